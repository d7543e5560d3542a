"""
Fingerprinting of an object's own attribute state for dirty detection.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Iterable, Protocol

from .attributes import class_name_of, is_object, is_resource, read_attributes, write_attribute
from .frozen import ID_ATTRIBUTE, is_bookkeeping, make_reference
from .identity import IdGenerator
from .lazy import is_lazy, lazy_object_id


class HashGenerator(Protocol):
    def fingerprint(self, obj: Any) -> str: ...


class NonRecursiveSHA1:
    """
    SHA-1 over an object's own attributes.

    Nested objects contribute only their reference token, so a descendant
    mutating alone never changes its parent's fingerprint. Objects met
    without an id are given one through ``id_generator`` so the token is
    stable across calls. Blacklisted and resource values hash the way the
    freezer stores them, which keeps a freshly thawed object clean.
    """

    def __init__(self, id_generator: IdGenerator, blacklist: Iterable[str] = ()) -> None:
        self.id_generator = id_generator
        self.blacklist = frozenset(blacklist)

    def fingerprint(self, obj: Any) -> str:
        attributes = {}
        for name, value in read_attributes(obj).items():
            if is_bookkeeping(name):
                continue
            if self._is_blacklisted(value):
                continue
            attributes[name] = self._normalize(value)
        payload = json.dumps(
            [class_name_of(type(obj)), attributes],
            sort_keys=True,
            separators=(",", ":"),
            default=repr,
        )
        return hashlib.sha1(payload.encode("utf-8")).hexdigest()

    def _is_blacklisted(self, value: Any) -> bool:
        if not self.blacklist or is_lazy(value):
            return False
        return is_object(value) and class_name_of(type(value)) in self.blacklist

    def _normalize(self, value: Any) -> Any:
        if is_lazy(value):
            return make_reference(lazy_object_id(value))
        if is_resource(value) or self._is_blacklisted(value):
            return None
        if is_object(value):
            return make_reference(self._ensure_id(value))
        if isinstance(value, dict):
            return {str(key): self._normalize(item) for key, item in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._normalize(item) for item in value]
        if isinstance(value, (set, frozenset)):
            return sorted((self._normalize(item) for item in value), key=repr)
        return value

    def _ensure_id(self, obj: Any) -> str:
        object_id = getattr(obj, ID_ATTRIBUTE, None)
        if object_id is None:
            object_id = self.id_generator.new_id()
            write_attribute(obj, ID_ATTRIBUTE, object_id)
        return object_id
