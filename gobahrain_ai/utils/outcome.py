"""
Result-style outcomes with latency attached

Provider calls inside a recipe are wrapped with capture() so that a failed
category degrades to an empty result instead of failing the whole recipe,
while still recording what went wrong and how long it took.
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Awaitable, Dict, Generic, Iterator, Optional, TypeVar

from loguru import logger

from .exceptions import GoBahrainError

T = TypeVar("T")


def _now_ms() -> float:
    return time.perf_counter() * 1000.0


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Success or failure of one provider call"""
    value: Optional[T] = None
    error: Optional[GoBahrainError] = None
    latency_ms: float = 0.0
    label: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


async def capture(label: str, awaitable: Awaitable[T]) -> Outcome[T]:
    """
    Await a provider call and turn pipeline errors into a failed Outcome

    Only GoBahrainError is captured. Anything else is a programming error
    and propagates.

    Args:
        label: Stage name used in logs and timings
        awaitable: The pending call

    Returns:
        Outcome with value or error, and the call latency
    """
    start = _now_ms()
    try:
        value = await awaitable
    except GoBahrainError as e:
        latency = _now_ms() - start
        logger.error(f"[{label}] failed after {latency:.0f}ms: {e}")
        return Outcome(error=e, latency_ms=latency, label=label)
    return Outcome(value=value, latency_ms=_now_ms() - start, label=label)


@dataclass
class StageTimer:
    """Collects named stage latencies (ms) for one request"""
    stages_ms: Dict[str, float] = field(default_factory=dict)
    started_ms: float = field(default_factory=_now_ms)

    def add(self, stage: str, ms: float) -> None:
        self.stages_ms[stage] = round(self.stages_ms.get(stage, 0.0) + max(ms, 0.0), 1)

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        start = _now_ms()
        try:
            yield
        finally:
            self.add(name, _now_ms() - start)

    def elapsed_ms(self) -> int:
        return int(round(_now_ms() - self.started_ms))

    def to_dict(self) -> Dict[str, float]:
        return dict(self.stages_ms)
