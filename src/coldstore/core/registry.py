"""
Registry mapping class names to types and zero-argument factories.
"""

from __future__ import annotations

import importlib
from threading import RLock
from typing import Any, Callable, Dict, Iterable, List, Optional, Type

from .attributes import class_name_of

Factory = Callable[[], Any]


def bare_factory(cls: Type[Any]) -> Factory:
    """
    Factory allocating an instance of ``cls`` without running ``__init__``.
    """

    def allocate() -> Any:
        return cls.__new__(cls)

    return allocate


class TypeRegistry:
    """
    Resolves persisted class names back into types.

    Classes are registered explicitly, or implicitly the first time they are
    frozen. When ``resolve_classes`` is enabled, unknown dotted names are
    imported on demand.
    """

    def __init__(self, *, resolve_classes: bool = True) -> None:
        self.resolve_classes = resolve_classes
        self._types: Dict[str, Type[Any]] = {}
        self._factories: Dict[str, Factory] = {}
        self._lock = RLock()

    def register(
        self,
        cls: Type[Any],
        *,
        name: Optional[str] = None,
        factory: Optional[Factory] = None,
    ) -> str:
        if not isinstance(cls, type):
            raise TypeError(f"Expected a class, got {type(cls).__name__}.")
        key = name or class_name_of(cls)
        with self._lock:
            self._types[key] = cls
            self._factories[key] = factory or bare_factory(cls)
        return key

    def name_for(self, cls: Type[Any]) -> str:
        """
        Return the registered name of ``cls``, registering it under its dotted path if new.
        """
        with self._lock:
            for key, registered in self._types.items():
                if registered is cls:
                    return key
        return self.register(cls)

    def resolve(self, name: str) -> Optional[Type[Any]]:
        with self._lock:
            cls = self._types.get(name)
        if cls is not None or not self.resolve_classes:
            return cls
        cls = self._import(name)
        if cls is not None:
            self.register(cls, name=name)
        return cls

    def unresolvable(self, names: Iterable[str]) -> List[str]:
        return sorted({name for name in names if self.resolve(name) is None})

    def allocate(self, name: str) -> Any:
        cls = self.resolve(name)
        if cls is None:
            raise KeyError(f"Unknown class name '{name}'.")
        with self._lock:
            factory = self._factories[name]
        return factory()

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._types

    @staticmethod
    def _import(name: str) -> Optional[Type[Any]]:
        parts = name.split(".")
        for index in range(len(parts) - 1, 0, -1):
            module_name = ".".join(parts[:index])
            try:
                target: Any = importlib.import_module(module_name)
            except ImportError:
                continue
            for attribute in parts[index:]:
                target = getattr(target, attribute, None)
                if target is None:
                    break
            if isinstance(target, type):
                return target
            return None
        return None
