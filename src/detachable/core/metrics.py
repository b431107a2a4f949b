# src/detachable/core/metrics.py
"""
In-process counters for detachable groups.

    detachable_groups_created_total{kind=single|multi}
    detachable_detach_total
    detachable_dispatch_total{outcome=forwarded|suppressed}
    detachable_handler_ms        latency of forwarded handlers (count/mean/max)

Every label has a fixed set of values, so the number of series is bounded.
"""
from __future__ import annotations

import json
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

GROUPS_CREATED = "detachable_groups_created_total"
DETACHES = "detachable_detach_total"
DISPATCHES = "detachable_dispatch_total"
HANDLER_MS = "detachable_handler_ms"

# metric name -> (label name, allowed values)
_LABELS: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    GROUPS_CREATED: ("kind", ("single", "multi")),
    DETACHES: ("", ("",)),
    DISPATCHES: ("outcome", ("forwarded", "suppressed")),
}


def _series(name: str, label: str) -> str:
    try:
        key, allowed = _LABELS[name]
    except KeyError:
        raise ValueError(f"unknown metric {name!r}") from None
    if label not in allowed:
        raise ValueError(f"{name}: label value {label!r} not in {allowed}")
    return f"{name}{{{key}={label}}}" if key else name


@dataclass
class LatencyStats:
    count: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0

    def add(self, ms: float) -> None:
        self.count += 1
        self.total_ms += ms
        self.max_ms = max(self.max_ms, ms)

    @property
    def mean_ms(self) -> float:
        return self.total_ms / self.count if self.count else 0.0


_lock = threading.Lock()
_counts: Dict[str, int] = {}
_latency = LatencyStats()


def inc(name: str, label: str = "") -> None:
    series = _series(name, label)
    with _lock:
        _counts[series] = _counts.get(series, 0) + 1


def value(name: str, label: str = "") -> int:
    """Current count of one series; 0 if it never fired (nothing is registered)."""
    series = _series(name, label)
    with _lock:
        return _counts.get(series, 0)


@contextmanager
def handler_timer():
    t0 = time.perf_counter()
    try:
        yield
    finally:
        ms = (time.perf_counter() - t0) * 1000.0
        with _lock:
            _latency.add(ms)


def snapshot() -> dict:
    with _lock:
        return {
            "counters": dict(_counts),
            HANDLER_MS: {
                "count": _latency.count,
                "mean": _latency.mean_ms,
                "max": _latency.max_ms,
            },
        }


def reset() -> None:
    global _latency
    with _lock:
        _counts.clear()
        _latency = LatencyStats()


def emit_now(logger: Optional[logging.Logger] = None, json_mode: bool = False) -> None:
    """Log the current snapshot as one line."""
    lg = logger or logging.getLogger("detachable.metrics")
    snap = snapshot()
    if json_mode:
        lg.info(json.dumps(snap, sort_keys=True))
        return
    ctr = " ".join(f"{k}={v}" for k, v in sorted(snap["counters"].items())) or "-"
    lat = snap[HANDLER_MS]
    lg.info("%s | %s n=%d mean=%.3f max=%.3f", ctr, HANDLER_MS, lat["count"], lat["mean"], lat["max"])


# ---------------- periodic exporter ----------------

_exporter: Optional[Tuple[threading.Thread, threading.Event]] = None


def start_exporter(interval_sec: float = 5.0, json_mode: bool = False, logger: Optional[logging.Logger] = None) -> None:
    global _exporter
    if _exporter is not None:
        return
    stop = threading.Event()

    def loop():
        while not stop.wait(max(0.5, interval_sec)):
            emit_now(logger, json_mode)

    th = threading.Thread(target=loop, name="detachable-metrics", daemon=True)
    th.start()
    _exporter = (th, stop)


def stop_exporter(timeout: float = 1.0) -> None:
    global _exporter
    if _exporter is None:
        return
    th, stop = _exporter
    stop.set()
    th.join(timeout=timeout)
    _exporter = None
