# src/flowfan/engine/clock.py
"""Time source for penalty expiry.

Queues stamp each unit with the monotonic time it becomes fetchable.
Production code uses SystemClock; tests inject MockClock and move time
forward by hand instead of sleeping.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol


class Clock(Protocol):
    def monotonic(self) -> float:
        """Seconds on a clock that never goes backwards."""
        ...


class SystemClock:
    def monotonic(self) -> float:
        return time.monotonic()


@dataclass
class MockClock:
    """Manually advanced clock.

    Example:
        clock = MockClock(now=0.0)
        queue = UnitQueue(clock=clock)
        queue.put(unit, delay_seconds=30.0)
        assert queue.poll() is None
        clock.advance(30.0)
        assert queue.poll() is unit
    """

    now: float = 0.0

    def monotonic(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError(f"Cannot advance time by negative amount: {seconds}")
        self.now += seconds


DEFAULT_CLOCK: Clock = SystemClock()
