"""
Freeze/thaw engine converting object graphs to flat record maps and back.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Optional

from .attributes import class_name_of, is_object, is_resource, read_attributes, write_attribute
from .errors import ClassResolutionError, DanglingReferenceError, InvalidArgumentError
from .frozen import (
    HASH_ATTRIBUTE,
    ID_ATTRIBUTE,
    FrozenGraph,
    FrozenRecord,
    is_bookkeeping,
    make_reference,
    parse_reference,
)
from .hashing import HashGenerator, NonRecursiveSHA1
from .identity import IdGenerator, UUIDGenerator
from .lazy import is_lazy, is_resolved, lazy_object_id, lazy_target
from .registry import TypeRegistry

ReferenceResolver = Callable[[str], Any]


def _normalize_blacklist(blacklist: Iterable[Any]) -> frozenset[str]:
    names = set()
    for entry in blacklist:
        names.add(class_name_of(entry) if isinstance(entry, type) else str(entry))
    return frozenset(names)


class Freezer:
    """
    Bidirectional codec between live object graphs and :class:`FrozenGraph`.

    ``freeze`` walks an object and everything it references, assigning ids
    and fingerprints, and emits one record per distinct instance. ``thaw``
    performs the inverse walk, allocating instances without calling their
    initializers and memoizing by id so shared and cyclic references come
    back as the same instance.
    """

    def __init__(
        self,
        id_generator: Optional[IdGenerator] = None,
        hash_generator: Optional[HashGenerator] = None,
        blacklist: Iterable[Any] = (),
        *,
        resolve_classes: bool = True,
        registry: Optional[TypeRegistry] = None,
    ) -> None:
        self.id_generator: IdGenerator = id_generator or UUIDGenerator()
        self.blacklist = _normalize_blacklist(blacklist)
        self.hash_generator: HashGenerator = hash_generator or NonRecursiveSHA1(
            self.id_generator, self.blacklist
        )
        if registry is None:
            registry = TypeRegistry(resolve_classes=resolve_classes)
        self.registry = registry

    # ------------------------------------------------------------------ #
    # Dirty detection
    # ------------------------------------------------------------------ #
    def is_dirty(self, obj: Any, rehash: bool = False) -> bool:
        if is_lazy(obj):
            obj = lazy_target(obj)
        if not is_object(obj):
            raise InvalidArgumentError(1, "object", obj)
        if not isinstance(rehash, bool):
            raise InvalidArgumentError(2, "bool", rehash)

        fingerprint = self.hash_generator.fingerprint(obj)
        dirty = getattr(obj, HASH_ATTRIBUTE, None) != fingerprint
        if dirty and rehash:
            write_attribute(obj, HASH_ATTRIBUTE, fingerprint)
        return dirty

    # ------------------------------------------------------------------ #
    # Freeze
    # ------------------------------------------------------------------ #
    def freeze(
        self,
        obj: Any,
        objects: Optional[Dict[str, FrozenRecord]] = None,
        instances: Optional[Dict[str, Any]] = None,
    ) -> FrozenGraph:
        """
        Freeze ``obj`` and everything reachable from it.

        ``objects`` is the accumulator of records already emitted during this
        traversal. When ``instances`` is given it receives the live instance
        behind every emitted record.
        """
        if is_lazy(obj):
            obj = lazy_target(obj)
        if not is_object(obj):
            raise InvalidArgumentError(1, "object", obj)
        if objects is None:
            objects = {}

        object_id = self.identify(obj)
        dirty = self.is_dirty(obj, rehash=True)

        if object_id not in objects:
            if instances is not None:
                instances[object_id] = obj
            record = FrozenRecord(
                class_name=self.registry.name_for(type(obj)),
                is_dirty=dirty,
            )
            # Registered before walking attributes so cycles stop here.
            objects[object_id] = record
            for name, value in read_attributes(obj).items():
                if name == ID_ATTRIBUTE:
                    continue
                if self._is_blacklisted(value):
                    continue
                record.state[name] = self._freeze_value(value, objects, instances)

        return FrozenGraph(root=object_id, objects=objects)

    def _freeze_value(
        self,
        value: Any,
        objects: Dict[str, FrozenRecord],
        instances: Optional[Dict[str, Any]],
    ) -> Any:
        if is_lazy(value):
            if not is_resolved(value):
                return make_reference(lazy_object_id(value))
            value = lazy_target(value)
        if is_resource(value) or self._is_blacklisted(value):
            return None
        if is_object(value):
            return make_reference(self.freeze(value, objects, instances).root)
        if isinstance(value, dict):
            return {key: self._freeze_value(item, objects, instances) for key, item in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._freeze_value(item, objects, instances) for item in value]
        if isinstance(value, (set, frozenset)):
            return sorted((self._freeze_value(item, objects, instances) for item in value), key=repr)
        return value

    def identify(self, obj: Any) -> str:
        """
        Return the id of ``obj``, assigning a new one on first use.
        """
        object_id = getattr(obj, ID_ATTRIBUTE, None)
        if object_id is None:
            object_id = self.id_generator.new_id()
            try:
                write_attribute(obj, ID_ATTRIBUTE, object_id)
            except AttributeError as exc:
                raise InvalidArgumentError(1, "object with writable attributes", obj) from exc
        return object_id

    def _is_blacklisted(self, value: Any) -> bool:
        if not self.blacklist or is_lazy(value):
            return False
        return is_object(value) and class_name_of(type(value)) in self.blacklist

    # ------------------------------------------------------------------ #
    # Thaw
    # ------------------------------------------------------------------ #
    def thaw(
        self,
        graph: FrozenGraph,
        root: Optional[str] = None,
        objects: Optional[Dict[str, Any]] = None,
        resolve_reference: Optional[ReferenceResolver] = None,
    ) -> Any:
        if not isinstance(graph, FrozenGraph):
            raise InvalidArgumentError(1, "FrozenGraph", graph)
        missing = self.registry.unresolvable(graph.class_names())
        if missing:
            raise ClassResolutionError(missing)
        if objects is None:
            objects = {}
        return self._thaw_record(graph, root or graph.root, objects, resolve_reference)

    def _thaw_record(
        self,
        graph: FrozenGraph,
        object_id: str,
        objects: Dict[str, Any],
        resolve_reference: Optional[ReferenceResolver],
    ) -> Any:
        if object_id in objects:
            return objects[object_id]

        record = graph.objects.get(object_id)
        if record is None:
            if resolve_reference is None:
                raise DanglingReferenceError(object_id)
            placeholder = resolve_reference(object_id)
            objects[object_id] = placeholder
            return placeholder

        instance = self.registry.allocate(record.class_name)
        objects[object_id] = instance

        for name, value in record.state.items():
            if is_bookkeeping(name):
                continue
            resolved = self._thaw_value(value, graph, objects, resolve_reference)
            write_attribute(instance, name, resolved)

        write_attribute(instance, ID_ATTRIBUTE, object_id)
        fingerprint = record.state.get(HASH_ATTRIBUTE)
        if fingerprint is not None:
            write_attribute(instance, HASH_ATTRIBUTE, fingerprint)
        return instance

    def _thaw_value(
        self,
        value: Any,
        graph: FrozenGraph,
        objects: Dict[str, Any],
        resolve_reference: Optional[ReferenceResolver],
    ) -> Any:
        target = parse_reference(value)
        if target is not None:
            return self._thaw_record(graph, target, objects, resolve_reference)
        if isinstance(value, dict):
            return {
                key: self._thaw_value(item, graph, objects, resolve_reference)
                for key, item in value.items()
            }
        if isinstance(value, list):
            return [self._thaw_value(item, graph, objects, resolve_reference) for item in value]
        return value
