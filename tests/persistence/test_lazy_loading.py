from coldstore.adapters import InMemoryBackend
from coldstore.core import is_lazy, is_resolved, lazy_object_id
from coldstore.persistence import Storage, StorageOptions


class CountingBackend(InMemoryBackend):
    def __init__(self):
        super().__init__()
        self.fetched = []

    def fetch_one(self, object_id):
        self.fetched.append(object_id)
        return super().fetch_one(object_id)


class Library:
    def __init__(self, name):
        self.name = name
        self.shelves = []
        self.featured = None


class Shelf:
    def __init__(self, label):
        self.label = label
        self.library = None


def seed(backend):
    writer = Storage(backend)
    library = Library("Central")
    library.shelves = [Shelf("A"), Shelf("B")]
    for shelf in library.shelves:
        shelf.library = library
    library.featured = library.shelves[0]
    return writer.store(library), [writer.freezer.identify(shelf) for shelf in library.shelves]


def test_lazy_fetch_loads_only_the_root():
    backend = CountingBackend()
    root_id, shelf_ids = seed(backend)
    storage = Storage(backend, options=StorageOptions(lazy_load=True))

    library = storage.fetch(root_id)
    assert backend.fetched == [root_id]
    assert all(is_lazy(shelf) for shelf in library.shelves)
    assert [lazy_object_id(shelf) for shelf in library.shelves] == shelf_ids
    assert not is_resolved(library.shelves[0])


def test_lazy_reference_resolves_on_first_access():
    backend = CountingBackend()
    root_id, shelf_ids = seed(backend)
    storage = Storage(backend, options=StorageOptions(lazy_load=True))
    library = storage.fetch(root_id)

    assert library.shelves[1].label == "B"
    assert backend.fetched == [root_id, shelf_ids[1]]
    assert library.shelves[1].library is library


def test_shared_lazy_reference_is_one_proxy():
    backend = CountingBackend()
    root_id, _ = seed(backend)
    storage = Storage(backend, options=StorageOptions(lazy_load=True))
    library = storage.fetch(root_id)

    assert library.featured is library.shelves[0]
    assert library.featured.label == "A"
    assert is_resolved(library.shelves[0])


def test_lazy_reference_prefers_cached_instance():
    backend = CountingBackend()
    root_id, shelf_ids = seed(backend)
    storage = Storage(backend, options=StorageOptions(lazy_load=True))

    shelf = storage.fetch(shelf_ids[0])
    library = shelf.library
    assert is_lazy(library)
    assert library.featured is shelf
    assert library.shelves[0] is shelf


def test_storing_lazy_graph_skips_unresolved_children():
    backend = CountingBackend()
    root_id, _ = seed(backend)
    storage = Storage(backend, options=StorageOptions(lazy_load=True))
    library = storage.fetch(root_id)

    library.name = "Renamed"
    storage.store(library)

    assert backend.fetch_one(root_id).state["name"] == "Renamed"
    assert not is_resolved(library.shelves[1])


def test_eager_mode_returns_real_objects():
    backend = CountingBackend()
    root_id, shelf_ids = seed(backend)
    storage = Storage(backend)

    library = storage.fetch(root_id)
    assert not any(is_lazy(shelf) for shelf in library.shelves)
    assert sorted(backend.fetched) == sorted([root_id] + shelf_ids)
