"""MetricsService protocol for the metrics composition facade.

The facade groups the HTTP instruments with the other metric groups that
share its registry, and owns the optional sidecar server. Production uses
``PrometheusMetricsService``; tests inject ``FakeMetricsService``.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from routemetrics.core.protocols.http_metrics import HttpMetrics
from routemetrics.core.protocols.metrics_renderer import MetricsRenderer


@runtime_checkable
class MetricsService(Protocol):
    """Protocol for the metrics facade.

    ``process`` and ``custom`` are optional groups; ``None`` means the
    group is not registered and costs nothing at scrape time.
    """

    http: HttpMetrics
    renderer: MetricsRenderer
    process: Optional[Any]
    custom: Optional[Any]

    async def start(self, *, host: str, port: int) -> None:
        """Start the sidecar metrics server."""
        ...

    async def stop(self) -> None:
        """Stop the sidecar metrics server."""
        ...
