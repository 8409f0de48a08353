"""Settings for the HTTP metrics plugin.

Values are read from ``ROUTEMETRICS_*`` environment variables. The settings
object is frozen: the plugin reads it once at install time.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from routemetrics.core.exceptions import MetricsConfigError

TimingBackend = Literal["perf_counter", "monotonic", "clock_gettime"]

_LOG_SCALE_MANTISSAS = (1, 2, 5)


def log_scale_buckets(start: int, end: int) -> tuple[float, ...]:
    """Return ``1, 2, 5 x 10^k`` boundaries for ``start <= k < end``, then ``10^end``.

    ``log_scale_buckets(0, 2)`` is ``(1.0, 2.0, 5.0, 10.0, 20.0, 50.0, 100.0)``.
    """
    if start > end:
        raise MetricsConfigError(f"bucket range start {start} is greater than end {end}")
    buckets = [float(m * 10**k) for k in range(start, end) for m in _LOG_SCALE_MANTISSAS]
    buckets.append(float(10**end))
    return tuple(buckets)


class MetricsSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ROUTEMETRICS_", extra="ignore", frozen=True)

    # Labels
    enable_path_label: bool = False

    # Instruments; a disabled instrument is never created
    total_requests_enabled: bool = True
    in_flight_requests_enabled: bool = True
    request_sizes_enabled: bool = True
    response_sizes_enabled: bool = True

    # Naming and buckets. Latency is observed in milliseconds.
    prefix: str = "http"
    total_requests_range: tuple[int, int] = (0, 4)
    request_sizes_range: tuple[int, int] = (0, 6)
    response_sizes_range: tuple[int, int] = (0, 6)

    timing_backend: TimingBackend = "perf_counter"

    # Requests to these paths are passed through without instrumentation
    excluded_paths: list[str] = Field(default_factory=lambda: ["/metrics"])

    # Composition
    process_metrics_enabled: bool = True
    process_namespace: str = ""
    exposition_format: Literal["prometheus", "openmetrics"] = "prometheus"

    # Sidecar /metrics server
    metrics_host: str = "0.0.0.0"
    metrics_port: int = 9090

    log_level: str = "INFO"

    @field_validator("total_requests_range", "request_sizes_range", "response_sizes_range")
    @classmethod
    def _ordered_range(cls, v: tuple[int, int]) -> tuple[int, int]:
        start, end = v
        if start > end:
            raise ValueError(f"range start {start} is greater than end {end}")
        return v

    @field_validator("prefix")
    @classmethod
    def _strip_prefix(cls, v: str) -> str:
        return v.strip().rstrip("_")

    def metric_name(self, name: str) -> str:
        """Prefix ``name`` with the configured metric prefix."""
        return f"{self.prefix}_{name}" if self.prefix else name
