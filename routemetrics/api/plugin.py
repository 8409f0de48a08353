"""Instrumentation plugin that maps request lifecycle events to metrics.

Per request the plugin goes through::

    started -> in flight -> handler invoked -> completed | failed | cancelled -> observed

Handler errors always propagate unchanged. Metric errors never reach the
request path: they are logged and dropped.
"""

from __future__ import annotations

from typing import Mapping, Optional

from routemetrics.core.config import MetricsSettings
from routemetrics.core.in_flight import InFlightGuard
from routemetrics.core.labels import HttpRequestLabels
from routemetrics.core.logging import logger
from routemetrics.core.protocols.http_metrics import HistogramInstrument, HttpMetrics
from routemetrics.core.protocols.pipeline import Proceed, RequestCall, RequestPipeline
from routemetrics.core.routes import RouteNode
from routemetrics.core.timing import Clock, Stopwatch, get_clock

ROUTE_ATTRIBUTE = "routemetrics.route"


class MetricsPlugin:
    """Record latency, in-flight, request size and response size for every request."""

    def __init__(
        self,
        metrics: HttpMetrics,
        settings: MetricsSettings | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the plugin.

        Args:
            metrics: HTTP metrics group; any of its four slots may be ``None``.
            settings: Plugin settings. Defaults are read from the environment.
            clock: Clock used for latency. Defaults to ``settings.timing_backend``.
        """
        self._metrics = metrics
        self._settings = settings or MetricsSettings()
        self._clock = clock or get_clock(self._settings.timing_backend)
        self._guard = InFlightGuard(metrics.in_flight_requests)
        self._log = logger.with_context(context_base="metrics_plugin")

    def install(self, pipeline: RequestPipeline) -> None:
        """Register the route-matched, intercept and response callbacks."""
        pipeline.on_route_matched(self.route_matched)
        pipeline.intercept(self.monitor)
        pipeline.on_response(self.response_sent)

    # -- pipeline callbacks --

    def route_matched(self, call: RequestCall, route: Optional[RouteNode]) -> None:
        call.attributes[ROUTE_ATTRIBUTE] = route

    async def monitor(self, call: RequestCall, proceed: Proceed) -> None:
        """Run the handler inside the in-flight guard and the stopwatch."""
        watch = Stopwatch(self._clock)
        try:
            with watch:
                if self._guard.enabled:
                    labels = HttpRequestLabels(method=call.method).in_flight()
                    await self._guard.run(labels, proceed)
                else:
                    await proceed()
        finally:
            self._record_request(call, watch.elapsed_ms)

    def response_sent(self, call: RequestCall, content_length: Optional[int]) -> None:
        """Record the response size when the outgoing length is known."""
        histogram = self._metrics.response_sizes
        if histogram is None or content_length is None:
            return
        labels = self._labels(call)
        if labels is not None:
            self._observe("response_sizes", histogram, float(content_length), labels)

    # -- helpers --

    def labels_for(self, call: RequestCall) -> HttpRequestLabels:
        return HttpRequestLabels(
            method=call.method,
            status_code=call.status_code,
            route=call.attributes.get(ROUTE_ATTRIBUTE),
            path=call.path if self._settings.enable_path_label else None,
        )

    def _labels(self, call: RequestCall) -> Mapping[str, str] | None:
        try:
            return self.labels_for(call).to_dict()
        except Exception as e:
            self._log.debug(f"Could not build request labels: {e!r}")
            return None

    def _record_request(self, call: RequestCall, elapsed_ms: float) -> None:
        request_sizes = self._metrics.request_sizes
        total_requests = self._metrics.total_requests
        if request_sizes is None and total_requests is None:
            return

        labels = self._labels(call)
        if labels is None:
            return

        if request_sizes is not None:
            size = call.request_size
            if size is not None:
                self._observe("request_sizes", request_sizes, float(size), labels)
        if total_requests is not None:
            self._observe("total_requests", total_requests, elapsed_ms, labels)

    def _observe(
        self,
        name: str,
        histogram: HistogramInstrument,
        value: float,
        labels: Mapping[str, str],
    ) -> None:
        try:
            histogram.observe(value, labels)
        except Exception as e:
            self._log.with_context(instrument=name).debug(f"Dropped observation: {e!r}")
