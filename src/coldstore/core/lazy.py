"""
Deferred-fetch stand-in for an object referenced from a thawed graph.
"""

from __future__ import annotations

from threading import RLock
from typing import Any, Callable

Loader = Callable[[str], Any]

_UNRESOLVED = object()


class LazyProxy:
    """
    Placeholder that loads its target on first use and forwards to it afterwards.

    The proxy keeps no public attributes of its own so that every attribute
    name belongs to the target. Use :func:`lazy_object_id`,
    :func:`lazy_target` and :func:`is_resolved` to inspect it.
    """

    __slots__ = ("_lazy_id", "_lazy_loader", "_lazy_target", "_lazy_lock")

    def __init__(self, object_id: str, loader: Loader) -> None:
        object.__setattr__(self, "_lazy_id", object_id)
        object.__setattr__(self, "_lazy_loader", loader)
        object.__setattr__(self, "_lazy_target", _UNRESOLVED)
        object.__setattr__(self, "_lazy_lock", RLock())

    def _resolve(self) -> Any:
        target = object.__getattribute__(self, "_lazy_target")
        if target is not _UNRESOLVED:
            return target
        with object.__getattribute__(self, "_lazy_lock"):
            target = object.__getattribute__(self, "_lazy_target")
            if target is _UNRESOLVED:
                loader = object.__getattribute__(self, "_lazy_loader")
                target = loader(object.__getattribute__(self, "_lazy_id"))
                object.__setattr__(self, "_lazy_target", target)
        return target

    # ------------------------------------------------------------------ #
    # Attribute forwarding
    # ------------------------------------------------------------------ #
    @property
    def __class__(self):  # type: ignore[override]
        return type(self._resolve())

    def __getattr__(self, name: str) -> Any:
        return getattr(self._resolve(), name)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(self._resolve(), name, value)

    def __delattr__(self, name: str) -> None:
        delattr(self._resolve(), name)

    def __dir__(self):
        return dir(self._resolve())

    # ------------------------------------------------------------------ #
    # Protocol forwarding
    # ------------------------------------------------------------------ #
    def __repr__(self) -> str:
        target = object.__getattribute__(self, "_lazy_target")
        if target is _UNRESOLVED:
            return f"<LazyProxy {object.__getattribute__(self, '_lazy_id')} (unresolved)>"
        return repr(target)

    def __str__(self) -> str:
        return str(self._resolve())

    def __bool__(self) -> bool:
        return bool(self._resolve())

    def __eq__(self, other: Any) -> bool:
        if type(other) is LazyProxy:
            other = other._resolve()
        return self._resolve() == other

    def __ne__(self, other: Any) -> bool:
        return not self == other

    def __hash__(self) -> int:
        return hash(self._resolve())

    def __len__(self) -> int:
        return len(self._resolve())

    def __iter__(self):
        return iter(self._resolve())

    def __contains__(self, item: Any) -> bool:
        return item in self._resolve()

    def __getitem__(self, key: Any) -> Any:
        return self._resolve()[key]

    def __setitem__(self, key: Any, value: Any) -> None:
        self._resolve()[key] = value

    def __delitem__(self, key: Any) -> None:
        del self._resolve()[key]

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._resolve()(*args, **kwargs)


def is_lazy(value: Any) -> bool:
    return type(value) is LazyProxy


def lazy_object_id(proxy: LazyProxy) -> str:
    return object.__getattribute__(proxy, "_lazy_id")


def is_resolved(proxy: LazyProxy) -> bool:
    return object.__getattribute__(proxy, "_lazy_target") is not _UNRESOLVED


def lazy_target(proxy: LazyProxy) -> Any:
    """
    Force resolution and return the real object behind ``proxy``.
    """
    return LazyProxy._resolve(proxy)
