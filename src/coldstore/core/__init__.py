"""
Freeze/thaw engine: identity, fingerprints, frozen graphs and lazy references.
"""

from .errors import ClassResolutionError, DanglingReferenceError, InvalidArgumentError
from .freezer import Freezer
from .frozen import (
    DELETE_FLAG,
    HASH_ATTRIBUTE,
    ID_ATTRIBUTE,
    REFERENCE_PREFIX,
    FrozenGraph,
    FrozenRecord,
    make_reference,
    parse_reference,
)
from .hashing import HashGenerator, NonRecursiveSHA1
from .identity import IdGenerator, SequentialIdGenerator, UUIDGenerator
from .lazy import LazyProxy, is_lazy, is_resolved, lazy_object_id, lazy_target
from .registry import TypeRegistry

__all__ = [
    "ClassResolutionError",
    "DanglingReferenceError",
    "InvalidArgumentError",
    "Freezer",
    "FrozenGraph",
    "FrozenRecord",
    "DELETE_FLAG",
    "HASH_ATTRIBUTE",
    "ID_ATTRIBUTE",
    "REFERENCE_PREFIX",
    "make_reference",
    "parse_reference",
    "HashGenerator",
    "NonRecursiveSHA1",
    "IdGenerator",
    "SequentialIdGenerator",
    "UUIDGenerator",
    "LazyProxy",
    "is_lazy",
    "is_resolved",
    "lazy_object_id",
    "lazy_target",
    "TypeRegistry",
]
