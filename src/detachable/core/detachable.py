# src/detachable/core/detachable.py
from __future__ import annotations

import functools
import logging
import threading
from typing import Any, Callable, Optional, Sequence, Tuple, Union

from detachable.core.log import get as get_logger
from detachable.core.errors import (
    EmptySequence,
    InvalidArgumentCount,
    InvalidArgumentType,
    NonCallableElement,
)
from detachable.core import metrics

__all__ = ["Handler", "DetachableGroup", "create", "Detachable"]

Handler = Callable[..., Any]

log = get_logger("group")


class DetachableGroup:
    """
    Wraps one or more handlers so their effect can be revoked after they
    have been handed to a timer, an I/O operation or an event source.

    Every wrapper forwards to its own handler while the group is attached.
    ``detach()`` switches the whole group off for good; wrappers that fire
    afterwards return None without calling anything. The source that holds
    the wrapper is not cancelled.

        group = DetachableGroup.single(on_data)
        loop.call_later(3.0, group.primary_wrapper, payload)
        ...
        group.detach()   # on_data will not run
    """

    __slots__ = ("_lock", "_underlying", "_wrappers", "__weakref__")

    def __init__(self, handlers: Sequence[Handler]):
        # callers go through single()/of()/create(); validation lives there
        self._lock = threading.Lock()
        # None once detached; references to the handlers are released with it
        self._underlying: Optional[Tuple[Handler, ...]] = tuple(handlers)
        self._wrappers: Tuple[Handler, ...] = tuple(
            self._make_wrapper(i, fn) for i, fn in enumerate(self._underlying)
        )
        metrics.inc(metrics.GROUPS_CREATED, "single" if len(self._wrappers) == 1 else "multi")
        if log.isEnabledFor(logging.DEBUG):
            log.debug("group created size=%d handlers=%s", len(self._wrappers),
                      [getattr(fn, "__name__", repr(fn)) for fn in self._underlying])

    # -------------------- Construction --------------------
    @classmethod
    def single(cls, handler: Handler) -> "DetachableGroup":
        if not callable(handler):
            err = InvalidArgumentType(handler)
            log.error("%s", err)
            raise err
        return cls((handler,))

    @classmethod
    def of(cls, handlers: Sequence[Handler]) -> "DetachableGroup":
        if not isinstance(handlers, (list, tuple)):
            err = InvalidArgumentType(handlers)
            log.error("%s", err)
            raise err
        if len(handlers) == 0:
            err = EmptySequence()
            log.error("%s", err)
            raise err
        for i, fn in enumerate(handlers):
            if not callable(fn):
                err = NonCallableElement(i, fn)
                log.error("%s", err)
                raise err
        return cls(handlers)

    # -------------------- Dispatch --------------------
    def _make_wrapper(self, index: int, fn: Handler) -> Handler:
        # index is bound per call of this factory, one per wrapper
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with self._lock:
                underlying = self._underlying
            if underlying is None:
                metrics.inc(metrics.DISPATCHES, "suppressed")
                return None
            metrics.inc(metrics.DISPATCHES, "forwarded")
            with metrics.handler_timer():
                return underlying[index](*args, **kwargs)

        functools.update_wrapper(wrapper, fn, updated=())
        # the group is the only owner of fn, so detach() can release it
        del wrapper.__wrapped__
        return wrapper

    # -------------------- Detachment --------------------
    def detach(self) -> None:
        """Stop every wrapper of this group from forwarding. Idempotent."""
        with self._lock:
            if self._underlying is None:
                return
            self._underlying = None
        metrics.inc(metrics.DETACHES)
        log.debug("group detached size=%d", len(self._wrappers))

    detach_all = detach

    # -------------------- Accessors --------------------
    @property
    def wrappers(self) -> Tuple[Handler, ...]:
        return self._wrappers

    @property
    def primary_wrapper(self) -> Handler:
        return self._wrappers[0]

    # names kept from the callback-style API
    handlers = wrappers
    handler = primary_wrapper

    @property
    def attached(self) -> bool:
        with self._lock:
            return self._underlying is not None

    @property
    def detached(self) -> bool:
        return not self.attached

    def __len__(self) -> int:
        return len(self._wrappers)

    def __repr__(self) -> str:
        state = "attached" if self.attached else "detached"
        return f"<DetachableGroup size={len(self._wrappers)} {state}>"


def create(handlers: Union[Handler, Sequence[Handler]]) -> DetachableGroup:
    """Group a single handler or a non-empty list/tuple of handlers."""
    if callable(handlers):
        return DetachableGroup.single(handlers)
    if isinstance(handlers, (list, tuple)):
        return DetachableGroup.of(handlers)
    err = InvalidArgumentType(handlers)
    log.error("%s", err)
    raise err


def Detachable(*args: Any) -> DetachableGroup:
    """Like create(), but also rejects a call without exactly one argument."""
    if len(args) != 1:
        err = InvalidArgumentCount(len(args))
        log.error("%s", err)
        raise err
    return create(args[0])
