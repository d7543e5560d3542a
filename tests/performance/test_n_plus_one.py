import logging

from coldstore.adapters import InMemoryBackend
from coldstore.persistence import Storage, StorageOptions


class Author:
    def __init__(self, name):
        self.name = name


class Post:
    def __init__(self, title, author):
        self.title = title
        self.author = author


class Feed:
    def __init__(self, posts):
        self.posts = posts


def seed(backend, count):
    writer = Storage(backend)
    feed = Feed([Post(f"post-{idx}", Author(f"author-{idx}")) for idx in range(count)])
    return writer.store(feed)


def test_lazy_storage_emits_n_plus_one_warning(caplog):
    caplog.set_level(logging.WARNING, logger="coldstore.persistence.storage")
    backend = InMemoryBackend()
    feed_id = seed(backend, 6)
    storage = Storage(backend, options=StorageOptions(lazy_load=True))

    feed = storage.fetch(feed_id)
    titles = [post.title for post in feed.posts]

    assert titles == [f"post-{idx}" for idx in range(6)]
    warnings = [record for record in caplog.records if "Potential N+1 detected" in record.message]
    assert len(warnings) == 1
    assert "'Post'" in warnings[0].message
    stats = {entry["operation"]: entry for entry in storage.call_stats()}
    assert stats["fetch_one"]["count"] == 7


def test_eager_storage_does_not_warn(caplog):
    caplog.set_level(logging.WARNING, logger="coldstore.persistence.storage")
    backend = InMemoryBackend()
    feed_id = seed(backend, 6)
    storage = Storage(backend)

    feed = storage.fetch(feed_id)
    assert [post.author.name for post in feed.posts][-1] == "author-5"
    assert not any("Potential N+1 detected" in record.message for record in caplog.records)
