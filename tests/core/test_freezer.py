import io
import threading

import pytest

from coldstore.core import (
    HASH_ATTRIBUTE,
    ID_ATTRIBUTE,
    ClassResolutionError,
    DanglingReferenceError,
    Freezer,
    FrozenGraph,
    FrozenRecord,
    InvalidArgumentError,
    SequentialIdGenerator,
    make_reference,
)


class Point:
    def __init__(self, a=1, b=2, c=3):
        self.a = a
        self.b = b
        self.c = c


class Node:
    def __init__(self, name, partner=None):
        self.name = name
        self.partner = partner
        self.children = []


class Secret:
    def __init__(self, value):
        self.value = value


class Holder:
    def __init__(self):
        self.label = "holder"
        self.secret = Secret("hidden")
        self.handle = io.StringIO("buffer")
        self.lock = threading.Lock()


class Slotted:
    __slots__ = ("x", "y", "__dict__")

    def __init__(self, x, y):
        self.x = x
        self.y = y


class Counter:
    def __init__(self):
        self.initialized = True


def make_freezer(**kwargs):
    return Freezer(SequentialIdGenerator(), **kwargs)


def test_freeze_emits_flat_record_map():
    freezer = make_freezer()
    graph = freezer.freeze(Point())

    assert graph.root == "obj-1"
    record = graph.objects["obj-1"]
    assert record.class_name == f"{__name__}.Point"
    assert record.is_dirty is True
    assert record.state["a"] == 1
    assert record.state["b"] == 2
    assert record.state["c"] == 3
    assert ID_ATTRIBUTE not in record.state
    assert record.fingerprint == record.state[HASH_ATTRIBUTE]


def test_nested_objects_become_references():
    freezer = make_freezer()
    parent = Node("parent", partner=Node("child"))
    graph = freezer.freeze(parent)

    child_id = getattr(parent.partner, ID_ATTRIBUTE)
    assert graph.objects[graph.root].state["partner"] == make_reference(child_id)
    assert graph.objects[child_id].state["name"] == "child"
    assert graph.unresolved_references() == set()


def test_identity_assignment_is_idempotent():
    freezer = make_freezer()
    point = Point()
    first = freezer.freeze(point).root
    second = freezer.freeze(point).root
    assert first == second == freezer.identify(point)


def test_shared_references_thaw_to_one_instance():
    freezer = make_freezer()
    shared = Node("shared")
    root = Node("root")
    root.children = [shared, shared]
    root.partner = shared

    graph = freezer.freeze(root)
    assert len(graph) == 2

    thawed = freezer.thaw(graph)
    assert thawed.children[0] is thawed.children[1]
    assert thawed.partner is thawed.children[0]
    assert thawed.partner.name == "shared"


def test_cycles_survive_round_trip():
    freezer = make_freezer()
    left = Node("left")
    right = Node("right", partner=left)
    left.partner = right

    graph = freezer.freeze(left)
    assert len(graph) == 2

    thawed = freezer.thaw(graph)
    assert thawed.partner.partner is thawed
    assert thawed.partner.name == "right"


def test_thaw_skips_initializer_and_restores_bookkeeping():
    freezer = make_freezer()
    counter = Counter()
    del counter.initialized
    counter.value = 5
    graph = freezer.freeze(counter)

    thawed = freezer.thaw(graph)
    assert not hasattr(thawed, "initialized")
    assert thawed.value == 5
    assert getattr(thawed, ID_ATTRIBUTE) == graph.root
    assert getattr(thawed, HASH_ATTRIBUTE) == graph.objects[graph.root].fingerprint


def test_freshly_thawed_object_is_clean():
    freezer = make_freezer()
    root = Node("root", partner=Node("child"))
    root.tags = {"b", "a"}
    root.pair = (1, 2)
    root.mapping = {"k": [1, {"deep": True}]}

    thawed = freezer.thaw(freezer.freeze(root))
    assert freezer.is_dirty(thawed) is False


def test_dirty_detection_tracks_own_attributes():
    freezer = make_freezer()
    point = Point()

    assert freezer.freeze(point).objects["obj-1"].is_dirty is True
    assert freezer.freeze(point).objects["obj-1"].is_dirty is False

    point.a = 10
    assert freezer.is_dirty(point) is True
    assert freezer.freeze(point).objects["obj-1"].is_dirty is True


def test_child_change_does_not_dirty_parent():
    freezer = make_freezer()
    parent = Node("parent", partner=Node("child"))
    freezer.freeze(parent)

    parent.partner.name = "renamed"
    assert freezer.is_dirty(parent) is False
    assert freezer.is_dirty(parent.partner) is True

    parent.partner = Node("other")
    assert freezer.is_dirty(parent) is True


def test_is_dirty_rehash_updates_fingerprint():
    freezer = make_freezer()
    point = Point()
    assert freezer.is_dirty(point) is True
    assert freezer.is_dirty(point) is True
    assert freezer.is_dirty(point, rehash=True) is True
    assert freezer.is_dirty(point) is False


def test_blacklisted_class_is_not_walked():
    freezer = make_freezer(blacklist=[Secret])
    holder = Holder()
    graph = freezer.freeze(holder)

    assert len(graph) == 1
    state = graph.objects[graph.root].state
    assert "secret" not in state
    assert not hasattr(holder.secret, ID_ATTRIBUTE)


def test_blacklist_accepts_dotted_names_inside_containers():
    freezer = make_freezer(blacklist=[f"{__name__}.Secret"])
    node = Node("root")
    node.children = [Secret("a"), Node("kept")]

    graph = freezer.freeze(node)
    children = graph.objects[graph.root].state["children"]
    assert children[0] is None
    assert children[1].startswith("__coldstore_")
    assert len(graph) == 2


def test_resources_are_stored_as_none():
    freezer = make_freezer()
    holder = Holder()
    state = freezer.freeze(holder).objects["obj-1"].state
    assert state["handle"] is None
    assert state["lock"] is None
    assert state["label"] == "holder"


def test_slots_round_trip():
    freezer = make_freezer()
    slotted = Slotted(1, [2, 3])
    slotted.extra = "dynamic"

    thawed = freezer.thaw(freezer.freeze(slotted))
    assert (thawed.x, thawed.y, thawed.extra) == (1, [2, 3], "dynamic")


def test_invalid_arguments_are_rejected():
    freezer = make_freezer()
    with pytest.raises(InvalidArgumentError):
        freezer.freeze(42)
    with pytest.raises(InvalidArgumentError):
        freezer.is_dirty(Point(), rehash="yes")
    with pytest.raises(InvalidArgumentError):
        freezer.thaw({"root": "x"})


def test_class_resolution_failure_is_atomic():
    freezer = make_freezer(resolve_classes=False)
    graph = FrozenGraph(
        root="a",
        objects={
            "a": FrozenRecord(class_name="missing.Alpha", state={"b": make_reference("b")}),
            "b": FrozenRecord(class_name="missing.Beta"),
        },
    )
    objects = {}
    with pytest.raises(ClassResolutionError) as excinfo:
        freezer.thaw(graph, objects=objects)

    assert excinfo.value.class_names == ["missing.Alpha", "missing.Beta"]
    assert objects == {}


def test_resolve_classes_imports_dotted_names():
    source = make_freezer()
    graph = FrozenGraph.from_dict(source.freeze(Point(4, 5, 6)).to_dict())

    target = Freezer(resolve_classes=True)
    thawed = target.thaw(graph)
    assert isinstance(thawed, Point)
    assert (thawed.a, thawed.b, thawed.c) == (4, 5, 6)


def test_eager_thaw_rejects_dangling_reference():
    freezer = make_freezer()
    graph = FrozenGraph(
        root="a",
        objects={"a": FrozenRecord(class_name=f"{__name__}.Node", state={"partner": make_reference("zz")})},
    )
    with pytest.raises(DanglingReferenceError) as excinfo:
        freezer.thaw(graph)
    assert excinfo.value.object_id == "zz"


def test_thaw_uses_reference_resolver_for_missing_records():
    freezer = make_freezer()
    graph = FrozenGraph(
        root="a",
        objects={"a": FrozenRecord(class_name=f"{__name__}.Node", state={"partner": make_reference("zz")})},
    )
    requested = []

    def resolve(object_id):
        requested.append(object_id)
        return "placeholder"

    thawed = freezer.thaw(graph, resolve_reference=resolve)
    assert thawed.partner == "placeholder"
    assert requested == ["zz"]


def test_freeze_reports_live_instances():
    freezer = make_freezer()
    root = Node("root", partner=Node("child"))
    instances = {}
    graph = freezer.freeze(root, instances=instances)
    assert set(instances) == set(graph.objects)
    assert instances[graph.root] is root
