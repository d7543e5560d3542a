"""
Attribute access and value classification shared by hashing and freezing.
"""

from __future__ import annotations

import datetime
import decimal
import enum
import io
import socket
import threading
import types
import uuid
from typing import Any, Dict, Iterator, Tuple

SCALAR_TYPES: Tuple[type, ...] = (str, int, float, bool, type(None))
VALUE_TYPES: Tuple[type, ...] = (
    bytes,
    complex,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    decimal.Decimal,
    uuid.UUID,
    enum.Enum,
)
SEQUENCE_TYPES: Tuple[type, ...] = (list, tuple, set, frozenset)
_NON_OBJECT_TYPES: Tuple[type, ...] = (
    type,
    types.ModuleType,
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
)
_RESOURCE_TYPES: Tuple[type, ...] = (
    io.IOBase,
    socket.socket,
    types.GeneratorType,
    types.CoroutineType,
    type(threading.Lock()),
    type(threading.RLock()),
)


def class_name_of(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def _slot_names(cls: type) -> Iterator[str]:
    for klass in cls.__mro__:
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name in ("__dict__", "__weakref__"):
                continue
            if name.startswith("__") and not name.endswith("__"):
                name = f"_{klass.__name__.lstrip('_')}{name}"
            yield name


def is_resource(value: Any) -> bool:
    return isinstance(value, _RESOURCE_TYPES)


def is_object(value: Any) -> bool:
    """
    True for instances that freeze into records of their own.
    """
    if isinstance(value, SCALAR_TYPES + VALUE_TYPES + SEQUENCE_TYPES + (dict,)):
        return False
    if isinstance(value, _NON_OBJECT_TYPES) or is_resource(value):
        return False
    return hasattr(value, "__dict__") or any(True for _ in _slot_names(type(value)))


def read_attributes(obj: Any) -> Dict[str, Any]:
    """
    Return the instance's own attributes, ``__dict__`` entries first, then slots.
    """
    attributes: Dict[str, Any] = dict(getattr(obj, "__dict__", {}))
    for name in _slot_names(type(obj)):
        if name in attributes:
            continue
        try:
            attributes[name] = object.__getattribute__(obj, name)
        except AttributeError:
            continue
    return attributes


def write_attribute(obj: Any, name: str, value: Any) -> None:
    object.__setattr__(obj, name, value)
