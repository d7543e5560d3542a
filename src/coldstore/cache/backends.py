"""Object cache implementations keyed by object id."""

from __future__ import annotations

from collections import OrderedDict
from threading import RLock
from typing import Any, List, Optional, Protocol


class ObjectCache(Protocol):
    def get(self, object_id: str) -> Optional[Any]: ...

    def set(self, object_id: str, instance: Any) -> None: ...

    def delete(self, object_id: str) -> None: ...

    def clear(self) -> None: ...


class EvictionPolicy(Protocol):
    """
    Decides which ids to drop after an insertion or access.
    """

    def touched(self, object_id: str) -> None: ...

    def forget(self, object_id: str) -> None: ...

    def victims(self) -> List[str]: ...

    def clear(self) -> None: ...


class NoEviction:
    def touched(self, object_id: str) -> None:
        return None

    def forget(self, object_id: str) -> None:
        return None

    def victims(self) -> List[str]:
        return []

    def clear(self) -> None:
        return None


class LRUEviction:
    """
    Keeps at most ``max_entries`` ids, evicting the least recently used.
    """

    def __init__(self, max_entries: int) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1.")
        self.max_entries = max_entries
        self._order: "OrderedDict[str, None]" = OrderedDict()

    def touched(self, object_id: str) -> None:
        self._order[object_id] = None
        self._order.move_to_end(object_id)

    def forget(self, object_id: str) -> None:
        self._order.pop(object_id, None)

    def victims(self) -> List[str]:
        overflow = len(self._order) - self.max_entries
        if overflow <= 0:
            return []
        evicted = list(self._order)[:overflow]
        for object_id in evicted:
            del self._order[object_id]
        return evicted

    def clear(self) -> None:
        self._order.clear()


class NoOpCache:
    def __init__(self) -> None:
        self._lock = RLock()

    def get(self, object_id: str) -> Optional[Any]:
        with self._lock:
            return None

    def set(self, object_id: str, instance: Any) -> None:
        with self._lock:
            return None

    def delete(self, object_id: str) -> None:
        with self._lock:
            return None

    def clear(self) -> None:
        with self._lock:
            return None


class InMemoryObjectCache:
    """
    Maps object ids to materialized instances.

    Entries live until deleted or cleared unless an eviction policy is given.
    """

    def __init__(self, eviction: Optional[EvictionPolicy] = None) -> None:
        self._store: dict[str, Any] = {}
        self._eviction: EvictionPolicy = eviction or NoEviction()
        self._lock = RLock()

    def get(self, object_id: str) -> Optional[Any]:
        with self._lock:
            instance = self._store.get(object_id)
            if instance is not None:
                self._eviction.touched(object_id)
            return instance

    def set(self, object_id: str, instance: Any) -> None:
        with self._lock:
            self._store[object_id] = instance
            self._eviction.touched(object_id)
            for victim in self._eviction.victims():
                self._store.pop(victim, None)

    def delete(self, object_id: str) -> None:
        with self._lock:
            self._store.pop(object_id, None)
            self._eviction.forget(object_id)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self._eviction.clear()

    def __contains__(self, object_id: str) -> bool:
        with self._lock:
            return object_id in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
