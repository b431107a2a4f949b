from detachable.core.detachable import Detachable, DetachableGroup, Handler, create
from detachable.core.errors import (
    DetachableError,
    EmptySequence,
    InvalidArgumentCount,
    InvalidArgumentType,
    NonCallableElement,
)

__all__ = [
    "Detachable",
    "DetachableGroup",
    "Handler",
    "create",
    "DetachableError",
    "EmptySequence",
    "InvalidArgumentCount",
    "InvalidArgumentType",
    "NonCallableElement",
]

__version__ = "0.1.0"
