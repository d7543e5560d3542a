"""
Engine options accepted by the storage coordinator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from ..core import Freezer, HashGenerator, IdGenerator, InvalidArgumentError


@dataclass
class StorageOptions:
    id_generator: Optional[IdGenerator] = None
    hash_generator: Optional[HashGenerator] = None
    blacklist: Iterable[Any] = ()
    lazy_load: bool = False
    resolve_classes: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.lazy_load, bool):
            raise InvalidArgumentError(4, "bool", self.lazy_load)
        if not isinstance(self.resolve_classes, bool):
            raise InvalidArgumentError(5, "bool", self.resolve_classes)
        self.blacklist = tuple(self.blacklist)

    def build_freezer(self) -> Freezer:
        return Freezer(
            self.id_generator,
            self.hash_generator,
            self.blacklist,
            resolve_classes=self.resolve_classes,
        )
