# src/detachable/core/errors.py
from __future__ import annotations

from typing import Any

__all__ = [
    "DetachableError",
    "InvalidArgumentCount",
    "InvalidArgumentType",
    "EmptySequence",
    "NonCallableElement",
]


class DetachableError(Exception):
    """Base class for construction-time errors of a DetachableGroup."""


class InvalidArgumentCount(DetachableError, TypeError):
    def __init__(self, found: int):
        self.found = found
        super().__init__(f"Invalid parameter: expected num of args: 1, found: [{found}]")


class InvalidArgumentType(DetachableError, TypeError):
    def __init__(self, value: Any):
        self.found_type = type(value).__name__
        super().__init__(
            f'Invalid parameter: expected a callable or a list/tuple of callables; found: [{self.found_type}]'
        )


class EmptySequence(DetachableError, ValueError):
    def __init__(self):
        super().__init__("Invalid parameter: expected a non-empty sequence of handlers")


class NonCallableElement(DetachableError, TypeError):
    def __init__(self, index: int, value: Any):
        self.index = index
        self.found_type = type(value).__name__
        super().__init__(
            f"Invalid parameter: handler at index {index} is not callable (found: [{self.found_type}])"
        )
