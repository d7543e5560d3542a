"""
Frozen graph structures and the reference encoding used inside record state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Set

REFERENCE_PREFIX = "__coldstore_"
BOOKKEEPING_PREFIX = "_coldstore_"
ID_ATTRIBUTE = "_coldstore_id"
HASH_ATTRIBUTE = "_coldstore_hash"
DELETE_FLAG = "_delete"


def make_reference(object_id: str) -> str:
    return f"{REFERENCE_PREFIX}{object_id}"


def parse_reference(value: Any) -> Optional[str]:
    """
    Return the target id when ``value`` is an encoded reference, else ``None``.
    """
    if isinstance(value, str) and value.startswith(REFERENCE_PREFIX):
        return value[len(REFERENCE_PREFIX) :]
    return None


def is_bookkeeping(name: str) -> bool:
    return name.startswith(BOOKKEEPING_PREFIX)


def iter_references(value: Any) -> Iterator[str]:
    """
    Yield every reference id found in a (possibly nested) state value.
    """
    target = parse_reference(value)
    if target is not None:
        yield target
    elif isinstance(value, dict):
        for item in value.values():
            yield from iter_references(item)
    elif isinstance(value, list):
        for item in value:
            yield from iter_references(item)


@dataclass
class FrozenRecord:
    class_name: str
    is_dirty: bool = True
    state: Dict[str, Any] = field(default_factory=dict)

    @property
    def fingerprint(self) -> Optional[str]:
        return self.state.get(HASH_ATTRIBUTE)

    def references(self) -> Set[str]:
        return set(iter_references(self.state))


@dataclass
class FrozenGraph:
    """
    Flat, id-keyed map of records plus the id of the root object.
    """

    root: str
    objects: Dict[str, FrozenRecord] = field(default_factory=dict)

    def __contains__(self, object_id: str) -> bool:
        return object_id in self.objects

    def __len__(self) -> int:
        return len(self.objects)

    def class_names(self) -> Set[str]:
        return {record.class_name for record in self.objects.values()}

    def dirty_ids(self) -> list[str]:
        return [object_id for object_id, record in self.objects.items() if record.is_dirty]

    def unresolved_references(self) -> Set[str]:
        missing: Set[str] = set()
        for record in self.objects.values():
            missing.update(ref for ref in record.references() if ref not in self.objects)
        return missing

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": self.root,
            "objects": {
                object_id: {
                    "class_name": record.class_name,
                    "is_dirty": record.is_dirty,
                    "state": record.state,
                }
                for object_id, record in self.objects.items()
            },
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "FrozenGraph":
        objects = {
            object_id: FrozenRecord(
                class_name=entry["class_name"],
                is_dirty=entry.get("is_dirty", False),
                state=dict(entry.get("state") or {}),
            )
            for object_id, entry in payload.get("objects", {}).items()
        }
        return cls(root=payload["root"], objects=objects)
