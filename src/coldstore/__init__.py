"""
coldstore public package initialization.

Freezes object graphs into flat id-keyed records, persists them through a
document backend and thaws them back, eagerly or lazily.
"""

from .adapters import (  # noqa: F401
    BulkWriteError,
    ConnectionConfig,
    InMemoryBackend,
    NotFoundError,
    SQLiteBackend,
    StorageConflict,
)
from .core import (  # noqa: F401
    ClassResolutionError,
    DanglingReferenceError,
    Freezer,
    FrozenGraph,
    FrozenRecord,
    InvalidArgumentError,
    LazyProxy,
    NonRecursiveSHA1,
    SequentialIdGenerator,
    UUIDGenerator,
)
from .hooks import HookDispatcher  # noqa: F401
from .persistence import Completion, Storage, StorageOptions, StoragePipeline, connect  # noqa: F401

__all__ = [
    "BulkWriteError",
    "ConnectionConfig",
    "InMemoryBackend",
    "NotFoundError",
    "SQLiteBackend",
    "StorageConflict",
    "ClassResolutionError",
    "DanglingReferenceError",
    "Freezer",
    "FrozenGraph",
    "FrozenRecord",
    "InvalidArgumentError",
    "LazyProxy",
    "NonRecursiveSHA1",
    "SequentialIdGenerator",
    "UUIDGenerator",
    "HookDispatcher",
    "Completion",
    "Storage",
    "StorageOptions",
    "StoragePipeline",
    "connect",
]
