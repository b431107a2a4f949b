# src/detachable/scenario.py
"""
Simulated fetch with a racing detach, configured from YAML.

    fetch_delay_ms: 3000      # fetch invokes its callback after this
    detach_delay_ms: 2000     # detach fires after this (null = never)
    message: "Data fetched!"
    time_scale: 1.0           # multiplies both delays
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml  # PyYAML

from detachable.core.detachable import DetachableGroup
from detachable.core.log import get as get_logger

log = get_logger("scenario")

Emit = Callable[[str], None]


@dataclass
class FetchScenario:
    fetch_delay_ms: float = 3000.0
    detach_delay_ms: Optional[float] = 2000.0
    message: str = "Data fetched!"
    time_scale: float = 1.0

    def __post_init__(self):
        if self.fetch_delay_ms < 0:
            raise ValueError("fetch_delay_ms must be >= 0")
        if self.detach_delay_ms is not None and self.detach_delay_ms < 0:
            raise ValueError("detach_delay_ms must be >= 0")
        if self.time_scale <= 0:
            raise ValueError("time_scale must be > 0")

    @property
    def fetch_delay_s(self) -> float:
        return self.fetch_delay_ms * self.time_scale / 1000.0

    @property
    def detach_delay_s(self) -> Optional[float]:
        if self.detach_delay_ms is None:
            return None
        return self.detach_delay_ms * self.time_scale / 1000.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FetchScenario":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(d) - known)
        if unknown:
            raise ValueError(f"unknown scenario keys: {unknown}")
        return cls(**d)


@dataclass
class ScenarioResult:
    lines: List[str] = field(default_factory=list)
    handler_calls: int = 0
    detached_before_dispatch: bool = False

    @property
    def fired(self) -> bool:
        return self.handler_calls > 0


def load_scenario(path: str | Path) -> FetchScenario:
    """Read a scenario mapping from a YAML file; an empty file gives defaults."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"scenario file must hold a mapping, got {type(data).__name__}")
    return FetchScenario.from_dict(data)


def fetch_data(loop: asyncio.AbstractEventLoop, delay_s: float, callback: Callable[[], Any]) -> asyncio.TimerHandle:
    """Pretend API call: hands callback to the loop and returns immediately."""
    return loop.call_later(delay_s, callback)


async def run_scenario(scenario: FetchScenario, emit: Emit = print) -> ScenarioResult:
    """Run one fetch/detach race on the running loop and wait for it to settle."""
    loop = asyncio.get_running_loop()
    result = ScenarioResult()
    fetch_done = loop.create_future()
    detach_done = loop.create_future()

    def out(line: str) -> None:
        result.lines.append(line)
        emit(line)

    def on_fetched() -> None:
        result.handler_calls += 1
        out(scenario.message)

    group = DetachableGroup.single(on_fetched)

    def fetched() -> None:
        group.primary_wrapper()
        if not fetch_done.done():
            fetch_done.set_result(None)

    def detach() -> None:
        if not result.fired:
            result.detached_before_dispatch = True
        out("Detaching callback")
        group.detach()
        if not detach_done.done():
            detach_done.set_result(None)

    out("Start")
    fetch_data(loop, scenario.fetch_delay_s, fetched)
    waits = [fetch_done]
    if scenario.detach_delay_s is not None:
        loop.call_later(scenario.detach_delay_s, detach)
        waits.append(detach_done)

    # both timers have fired once every awaited future is resolved
    await asyncio.gather(*waits)

    log.info("scenario done fired=%s detached_first=%s", result.fired, result.detached_before_dispatch)
    return result
