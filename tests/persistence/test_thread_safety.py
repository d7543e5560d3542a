import threading

from coldstore.adapters import ConnectionConfig, InMemoryBackend, SQLiteBackend
from coldstore.persistence import Storage


class ThreadUser:
    def __init__(self, idx):
        self.idx = idx
        self.visits = 0


def run_workers(storage, count):
    errors: list[Exception] = []
    stored: dict[int, str] = {}
    barrier = threading.Barrier(count)

    def worker(offset: int) -> None:
        try:
            barrier.wait()
            for idx in range(50):
                user = ThreadUser(offset * 1000 + idx)
                object_id = storage.store(user)
                user.visits += 1
                storage.store(user)
                storage.evict(object_id)
                assert storage.fetch(object_id).visits == 1
                stored[user.idx] = object_id
        except Exception as exc:  # pragma: no cover - failure path
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return errors, stored


def test_storage_thread_safety_in_memory():
    storage = Storage(InMemoryBackend())
    errors, stored = run_workers(storage, 5)
    assert errors == []
    assert len(stored) == 250


def test_storage_thread_safety_sqlite(tmp_path):
    config = ConnectionConfig(url=f"sqlite:///{tmp_path / 'threadsafe.db'}")
    storage = Storage(SQLiteBackend(), connection_config=config)
    errors, stored = run_workers(storage, 4)
    storage.close()
    assert errors == []
    assert len(stored) == 200


def test_call_stats_thread_safety():
    storage = Storage(InMemoryBackend())
    errors: list[Exception] = []
    barrier = threading.Barrier(4)

    def worker() -> None:
        try:
            barrier.wait()
            for idx in range(50):
                storage.store(ThreadUser(idx))
                storage.call_stats()
        except Exception as exc:  # pragma: no cover - failure path
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    [stat] = storage.call_stats()
    assert stat["count"] == 200


class BarrierBackend(InMemoryBackend):
    def __init__(self, parties):
        super().__init__()
        self.barrier = threading.Barrier(parties)

    def fetch_one(self, object_id):
        document = super().fetch_one(object_id)
        self.barrier.wait(timeout=5)
        return document


def test_concurrent_fetches_share_one_instance():
    backend = BarrierBackend(2)
    writer = Storage(backend)
    object_id = writer.store(ThreadUser(7))

    storage = Storage(backend)
    results: list[object] = []
    errors: list[Exception] = []

    def worker() -> None:
        try:
            results.append(storage.fetch(object_id))
        except Exception as exc:  # pragma: no cover - failure path
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    first, second = results
    assert first is second
    assert storage.cache.get(object_id) is first
