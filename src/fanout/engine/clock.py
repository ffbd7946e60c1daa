# src/fanout/engine/clock.py
"""Clock abstraction for testable interval logic.

The scheduler reads time for two things: the producer refill interval and
the idle wait between iterations when no transfer is active. Both go
through a Clock so tests can run the loop without real sleeps.

Production code uses SystemClock (the default).
Tests inject MockClock to control time advancement.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Abstract clock for interval-based operations.

    Implementations:
    - SystemClock: Uses time.monotonic() and time.sleep() (production)
    - MockClock: Returns controllable times, sleep() advances time (testing)
    """

    def monotonic(self) -> float:
        """Return monotonic time in seconds."""
        ...

    def sleep(self, seconds: float) -> None:
        """Block the caller for the given number of seconds."""
        ...


class SystemClock:
    """Production clock backed by the system's monotonic clock."""

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class MockClock:
    """Controllable clock for deterministic testing.

    sleep() advances the mock time instead of blocking.

    Example:
        clock = MockClock(start=0.0)
        watch = Stopwatch(clock)

        watch.tick()
        clock.advance(1.5)
        assert watch.elapsed() == 1.5
    """

    def __init__(self, start: float = 0.0) -> None:
        self._current = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self._current

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if seconds > 0:
            self._current += seconds

    def advance(self, seconds: float) -> None:
        """Advance mock time by specified seconds.

        Raises:
            ValueError: If seconds is negative.
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance time by negative amount: {seconds}")
        self._current += seconds


class Stopwatch:
    """Elapsed-time measurement with tick/tock semantics.

    tick() starts (or restarts) a measurement, tock() marks its end.
    elapsed() reports tock - tick, or the running time if tock() was not
    called since the last tick().
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or DEFAULT_CLOCK
        self._start = self._clock.monotonic()
        self._end: float | None = None

    def tick(self) -> None:
        self._start = self._clock.monotonic()
        self._end = None

    def tock(self) -> None:
        self._end = self._clock.monotonic()

    def elapsed(self) -> float:
        """Elapsed seconds of the current measurement."""
        end = self._end if self._end is not None else self._clock.monotonic()
        return end - self._start


# Default clock for production use
DEFAULT_CLOCK: Clock = SystemClock()
