"""Monotonic elapsed-time measurement.

All clocks report integer nanoseconds from a monotonic source; callers only
ever see milliseconds as a float (``nanoseconds / 1_000_000``), whatever the
backend.
"""

from __future__ import annotations

import time
from types import TracebackType
from typing import Awaitable, Callable, Protocol, TypeVar, runtime_checkable

from routemetrics.core.exceptions import UnknownClockError

T = TypeVar("T")

_NANOS_PER_MILLI = 1_000_000


@runtime_checkable
class Clock(Protocol):
    """A monotonic nanosecond clock."""

    def now_ns(self) -> int:
        """Return the current reading in nanoseconds; only differences are meaningful."""
        ...


class PosixMonotonicClock:
    """OS-level ``CLOCK_MONOTONIC`` via ``clock_gettime``. Unix only."""

    def __init__(self) -> None:
        if not self.is_available():
            raise UnknownClockError("clock_gettime", reason="timing backend unavailable")
        self._clock_id = time.CLOCK_MONOTONIC

    @staticmethod
    def is_available() -> bool:
        return hasattr(time, "clock_gettime_ns") and hasattr(time, "CLOCK_MONOTONIC")

    def now_ns(self) -> int:
        return time.clock_gettime_ns(self._clock_id)


class MonotonicClock:
    """Interpreter-provided ``time.monotonic_ns``."""

    def now_ns(self) -> int:
        return time.monotonic_ns()


class PerfCounterClock:
    """Highest-resolution process timer, ``time.perf_counter_ns``."""

    def now_ns(self) -> int:
        return time.perf_counter_ns()


_BACKENDS: dict[str, type] = {
    "clock_gettime": PosixMonotonicClock,
    "monotonic": MonotonicClock,
    "perf_counter": PerfCounterClock,
}


def get_clock(name: str = "perf_counter") -> Clock:
    """Instantiate the timing backend registered under ``name``."""
    try:
        backend = _BACKENDS[name]
    except KeyError:
        raise UnknownClockError(name) from None
    return backend()


def nanos_to_millis(nanos: int) -> float:
    return nanos / _NANOS_PER_MILLI


class Stopwatch:
    """Context manager that records elapsed milliseconds on every exit path.

    The end time is captured before any exception leaves the block; the
    exception itself is never suppressed::

        with Stopwatch() as watch:
            await handler()
        watch.elapsed_ms
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or PerfCounterClock()
        self._start: int | None = None
        self._end: int | None = None

    def __enter__(self) -> "Stopwatch":
        self._end = None
        self._start = self._clock.now_ns()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._end = self._clock.now_ns()

    @property
    def elapsed_ns(self) -> int:
        if self._start is None:
            return 0
        end = self._end if self._end is not None else self._clock.now_ns()
        return max(0, end - self._start)

    @property
    def elapsed_ms(self) -> float:
        return nanos_to_millis(self.elapsed_ns)


def measure(work: Callable[[], T], clock: Clock | None = None) -> tuple[T, float]:
    """Run ``work`` once and return ``(result, elapsed_ms)``."""
    with Stopwatch(clock) as watch:
        result = work()
    return result, watch.elapsed_ms


async def measure_async(work: Callable[[], Awaitable[T]], clock: Clock | None = None) -> tuple[T, float]:
    """Await ``work()`` once and return ``(result, elapsed_ms)``.

    Time spent suspended inside ``work`` counts towards the elapsed time.
    """
    with Stopwatch(clock) as watch:
        result = await work()
    return result, watch.elapsed_ms
