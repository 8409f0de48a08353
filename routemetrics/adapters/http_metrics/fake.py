"""Fake HttpMetrics for testing.

Records all calls in memory so tests can assert on metrics behaviour
without reaching into prometheus-client internals.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Mapping


@dataclass
class Observation:
    """Single histogram sample."""

    value: float
    labels: dict[str, str]


@dataclass
class FakeHistogram:
    """In-memory histogram spy."""

    observations: list[Observation] = field(default_factory=list)

    def observe(self, value: float, labels: Mapping[str, str]) -> None:
        self.observations.append(Observation(value, dict(labels)))

    @property
    def values(self) -> list[float]:
        return [o.value for o in self.observations]


class FakeGauge:
    """In-memory gauge spy; inc/dec are atomic across threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.values: dict[tuple[tuple[str, str], ...], int] = {}
        self.calls: int = 0

    @staticmethod
    def _key(labels: Mapping[str, str]) -> tuple[tuple[str, str], ...]:
        return tuple(sorted(labels.items()))

    def inc(self, labels: Mapping[str, str]) -> None:
        key = self._key(labels)
        with self._lock:
            self.values[key] = self.values.get(key, 0) + 1
            self.calls += 1

    def dec(self, labels: Mapping[str, str]) -> None:
        key = self._key(labels)
        with self._lock:
            self.values[key] = self.values.get(key, 0) - 1
            self.calls += 1

    def value(self, **labels: str) -> int:
        return self.values.get(self._key(labels), 0)

    @property
    def total(self) -> int:
        return sum(self.values.values())


class FailingHistogram:
    """Histogram whose every observation raises, for error-path tests."""

    def __init__(self, exc: Exception | None = None) -> None:
        self._exc = exc or KeyError("path")
        self.attempts: int = 0

    def observe(self, value: float, labels: Mapping[str, str]) -> None:
        self.attempts += 1
        raise self._exc


class FakeHttpMetrics:
    """In-memory spy implementing the HttpMetrics protocol.

    Usage:
        fake = FakeHttpMetrics()
        # … inject into MetricsPlugin …
        assert fake.in_flight_requests.total == 0
        assert len(fake.total_requests.observations) == 1

    Pass ``in_flight=False`` (etc.) to leave a slot empty.
    """

    def __init__(
        self,
        *,
        total_requests: bool = True,
        in_flight: bool = True,
        request_sizes: bool = True,
        response_sizes: bool = True,
    ) -> None:
        self.total_requests: FakeHistogram | None = FakeHistogram() if total_requests else None
        self.in_flight_requests: FakeGauge | None = FakeGauge() if in_flight else None
        self.request_sizes: FakeHistogram | None = FakeHistogram() if request_sizes else None
        self.response_sizes: FakeHistogram | None = FakeHistogram() if response_sizes else None

    # -- test helpers --

    def clear(self) -> None:
        """Reset all recorded state."""
        for histogram in (self.total_requests, self.request_sizes, self.response_sizes):
            if histogram is not None:
                histogram.observations.clear()
        if self.in_flight_requests is not None:
            self.in_flight_requests.values.clear()
            self.in_flight_requests.calls = 0
