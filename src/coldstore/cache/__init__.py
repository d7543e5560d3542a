"""Object caches for coldstore."""

from .backends import (
    EvictionPolicy,
    InMemoryObjectCache,
    LRUEviction,
    NoEviction,
    NoOpCache,
    ObjectCache,
)

__all__ = [
    "ObjectCache",
    "NoOpCache",
    "InMemoryObjectCache",
    "EvictionPolicy",
    "NoEviction",
    "LRUEviction",
]
