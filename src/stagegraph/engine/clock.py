"""Clock abstraction for testable wall-clock reads.

Still-running stages and branches report their duration as "now minus
start", and synthetic parallel wrappers are stamped with the time they were
created. Reading the time through a Clock keeps those values deterministic
in tests and lets merge idempotence be checked without real-time flakiness.

Production code uses SystemClock (the default).
Tests inject MockClock to control time advancement.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Abstract wall clock.

    Implementations:
    - SystemClock: Uses time.time() (production)
    - MockClock: Returns controllable times (testing)
    """

    def now_millis(self) -> int:
        """Return current wall-clock time in epoch milliseconds."""
        ...


class SystemClock:
    """Production clock using time.time()."""

    def now_millis(self) -> int:
        return int(time.time() * 1000)


class MockClock:
    """Controllable clock for deterministic testing.

    Example:
        clock = MockClock(start=5_000)
        builder = PipelineNodeGraphBuilder(run, scanner=scanner, clock=clock)
        clock.advance(250)
    """

    def __init__(self, start: int = 0) -> None:
        self._current = start

    def now_millis(self) -> int:
        return self._current

    def advance(self, millis: int) -> None:
        """Advance mock time.

        Raises:
            ValueError: If millis is negative.
        """
        if millis < 0:
            raise ValueError(f"Cannot advance time by negative amount: {millis}")
        self._current += millis

    def set(self, value: int) -> None:
        """Set mock time to an absolute value (may move backwards)."""
        self._current = value


# Default clock for production use
DEFAULT_CLOCK: Clock = SystemClock()
