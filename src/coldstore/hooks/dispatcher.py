"""
Hook dispatcher coordinating store and fetch lifecycle events.
"""

from __future__ import annotations

from collections import defaultdict
from threading import RLock
from typing import Any, Callable, Dict, List, Optional, Type

HookHandler = Callable[..., None]

HOOK_EVENTS = frozenset({"before_store", "after_store", "after_fetch", "after_delete"})


class HookDispatcher:
    """
    Maintains global and per-class hook handlers.

    Each storage owns its dispatcher; handlers receive the affected instance
    (or ``None``) plus keyword context such as ``object_id`` and ``storage``.
    """

    def __init__(self) -> None:
        self._global_handlers: Dict[str, List[HookHandler]] = defaultdict(list)
        self._class_handlers: Dict[type, Dict[str, List[HookHandler]]] = defaultdict(
            lambda: defaultdict(list)
        )
        self._lock = RLock()

    def register(self, event: str, handler: HookHandler, *, cls: Optional[Type[Any]] = None) -> None:
        if event not in HOOK_EVENTS:
            raise ValueError(f"Unknown hook event '{event}'.")
        with self._lock:
            if cls:
                self._class_handlers[cls][event].append(handler)
            else:
                self._global_handlers[event].append(handler)

    def fire(self, event: str, instance: Any, **context: Any) -> None:
        with self._lock:
            handlers = list(self._global_handlers.get(event, []))
            if instance is not None:
                handlers.extend(self._class_handlers.get(type(instance), {}).get(event, []))
        for handler in handlers:
            handler(instance, **context)

    def clear(self) -> None:
        with self._lock:
            self._global_handlers.clear()
            self._class_handlers.clear()
