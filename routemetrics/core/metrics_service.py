"""Prometheus-backed MetricsService implementation.

Composes the HTTP metrics group, the optional process and custom groups,
the renderer and the sidecar HTTP server behind a single object so callers
only deal with one facade instead of a registry plus several adapters.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Sequence

from prometheus_client import CollectorRegistry, ProcessCollector
from prometheus_client.registry import Collector

from routemetrics.core.config import MetricsSettings
from routemetrics.core.logging import logger
from routemetrics.core.protocols.http_metrics import HttpMetrics
from routemetrics.core.protocols.metrics_renderer import MetricsRenderer

if TYPE_CHECKING:
    from routemetrics.api.metrics import MetricsServer


class PrometheusMetricsService:
    """Prometheus-backed facade over every metric group sharing one registry.

    Satisfies the ``MetricsService`` protocol structurally.

    ``process`` and ``custom`` are nullable slots: a group that was not
    configured is ``None`` and contributes nothing to a scrape.
    """

    http: HttpMetrics
    renderer: MetricsRenderer

    def __init__(
        self,
        http: HttpMetrics,
        renderer: MetricsRenderer,
        process: Optional[Collector] = None,
        custom: Optional[Sequence[Collector]] = None,
    ) -> None:
        self.http = http
        self.renderer = renderer
        self.process = process
        self.custom = list(custom) if custom else None
        self._server: MetricsServer | None = None

    @property
    def content_type(self) -> str:
        return self.renderer.content_type

    def generate(self) -> bytes:
        return self.renderer.generate()

    async def start(self, *, host: str, port: int) -> None:
        """Start the sidecar metrics server."""
        from routemetrics.api.metrics import MetricsServer

        self._server = MetricsServer(self.renderer, port, host)
        await self._server.start()

    async def stop(self) -> None:
        if self._server:
            await self._server.stop()
            self._server = None


def build_metrics_service(
    settings: MetricsSettings | None = None,
    registry: CollectorRegistry | None = None,
    custom: Optional[Sequence[Collector]] = None,
) -> PrometheusMetricsService:
    """Assemble the default Prometheus facade.

    ``custom`` collectors (which may themselves be ``CollectorRegistry``
    instances) are registered on the shared registry so one scrape covers
    every group.
    """
    from routemetrics.adapters.http_metrics import PrometheusHttpMetrics
    from routemetrics.adapters.metrics_renderer import PrometheusMetricsRenderer

    settings = settings or MetricsSettings()
    registry = registry or CollectorRegistry()

    http = PrometheusHttpMetrics(settings, registry)

    process: Any = None
    if settings.process_metrics_enabled:
        process = ProcessCollector(namespace=settings.process_namespace, registry=registry)

    openmetrics = settings.exposition_format == "openmetrics"

    for collector in custom or ():
        registry.register(collector)

    logger.with_context(operation="build_metrics_service").debug(
        f"Metrics registry assembled with prefix {settings.prefix!r}, "
        f"process={'on' if process is not None else 'off'}, custom={len(custom or ())}"
    )
    return PrometheusMetricsService(
        http=http,
        renderer=PrometheusMetricsRenderer(registry, openmetrics=openmetrics),
        process=process,
        custom=custom,
    )
