"""
Error hierarchy raised by the freeze/thaw engine.
"""

from __future__ import annotations

from typing import Iterable, List


class InvalidArgumentError(TypeError):
    """
    Raised when a public operation receives a value of the wrong type.
    """

    def __init__(self, position: int, expected: str, value: object = None) -> None:
        self.position = position
        self.expected = expected
        received = type(value).__name__
        super().__init__(f"Argument #{position} must be of type {expected}, got {received}.")


class ClassResolutionError(RuntimeError):
    """
    Raised before thawing when one or more class names cannot be resolved.
    """

    def __init__(self, class_names: Iterable[str]) -> None:
        self.class_names: List[str] = sorted(set(class_names))
        quoted = ", ".join(f'"{name}"' for name in self.class_names)
        super().__init__(f"Class(es) {quoted} could not be found.")


class DanglingReferenceError(LookupError):
    """
    Raised when an eager thaw meets a reference whose record is not in the graph.
    """

    def __init__(self, object_id: str) -> None:
        self.object_id = object_id
        super().__init__(f'Referenced object "{object_id}" is not part of the frozen graph.')
