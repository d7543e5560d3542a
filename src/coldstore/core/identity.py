"""
Object identity generators.
"""

from __future__ import annotations

import itertools
import uuid
from threading import RLock
from typing import Protocol


class IdGenerator(Protocol):
    def new_id(self) -> str: ...


class UUIDGenerator:
    """
    Issues random UUID4 identifiers as 32 character hex strings.
    """

    def new_id(self) -> str:
        return uuid.uuid4().hex


class SequentialIdGenerator:
    """
    Deterministic identifiers (``obj-1``, ``obj-2``...) for tests and fixtures.
    """

    def __init__(self, prefix: str = "obj", start: int = 1) -> None:
        self.prefix = prefix
        self._counter = itertools.count(start)
        self._lock = RLock()

    def new_id(self) -> str:
        with self._lock:
            return f"{self.prefix}-{next(self._counter)}"
