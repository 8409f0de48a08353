"""HttpMetrics protocol for HTTP request/response instrumentation.

Abstracts metric collection so the plugin depends on a protocol rather than
a concrete library. Production uses Prometheus; tests inject a fake that
records calls in memory.

Each of the four standard instruments is an optional slot. ``None`` means
"do not record"; the plugin checks presence before every operation.
"""

from typing import Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class HistogramInstrument(Protocol):
    """A histogram that accepts one sample per call."""

    def observe(self, value: float, labels: Mapping[str, str]) -> None:
        """Record ``value`` under ``labels``. Must be safe under concurrent calls."""
        ...


@runtime_checkable
class GaugeInstrument(Protocol):
    """A gauge whose net value reflects all concurrent callers."""

    def inc(self, labels: Mapping[str, str]) -> None:
        """Atomically add one under ``labels``."""
        ...

    def dec(self, labels: Mapping[str, str]) -> None:
        """Atomically subtract one under ``labels``."""
        ...


@runtime_checkable
class HttpMetrics(Protocol):
    """Protocol for the HTTP metrics group.

    Attributes:
        total_requests: Request latency in milliseconds (its count is the
            request total).
        in_flight_requests: Requests currently being handled.
        request_sizes: Inbound body size in bytes.
        response_sizes: Outbound body size in bytes.
    """

    total_requests: Optional[HistogramInstrument]
    in_flight_requests: Optional[GaugeInstrument]
    request_sizes: Optional[HistogramInstrument]
    response_sizes: Optional[HistogramInstrument]
