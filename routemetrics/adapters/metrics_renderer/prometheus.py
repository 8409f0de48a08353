"""Prometheus implementation of the MetricsRenderer protocol.

Serializes every group registered on one CollectorRegistry (HTTP, process,
custom collectors) in a single pass, either in the classic Prometheus text
format or in OpenMetrics, which adds ``_created`` series and the ``# EOF``
terminator that some scrapers require.
"""

from prometheus_client import CollectorRegistry
from prometheus_client import exposition as text_exposition
from prometheus_client.openmetrics import exposition as openmetrics_exposition

from routemetrics.core.protocols.metrics_renderer import MetricsRenderer


class PrometheusMetricsRenderer(MetricsRenderer):
    """Render all metrics in a shared CollectorRegistry."""

    def __init__(self, registry: CollectorRegistry, openmetrics: bool = False) -> None:
        self._registry = registry
        self._format = openmetrics_exposition if openmetrics else text_exposition

    @property
    def openmetrics(self) -> bool:
        return self._format is openmetrics_exposition

    @property
    def content_type(self) -> str:
        return self._format.CONTENT_TYPE_LATEST

    def generate(self) -> bytes:
        return self._format.generate_latest(self._registry)
