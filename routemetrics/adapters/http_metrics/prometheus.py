"""Prometheus implementation of the HttpMetrics protocol.

Uses a caller-supplied CollectorRegistry (or a dedicated one) so the HTTP
group is isolated from the default global registry and can be composed
with process and custom metrics on the same ``/metrics`` endpoint.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from prometheus_client import CollectorRegistry, Gauge, Histogram

from routemetrics.core.config import MetricsSettings, log_scale_buckets
from routemetrics.core.labels import IN_FLIGHT_LABEL_NAMES, request_label_names
from routemetrics.core.protocols.http_metrics import GaugeInstrument, HistogramInstrument


class PrometheusHistogram(HistogramInstrument):
    """Bind a labelled Histogram to the label names it was declared with."""

    def __init__(self, histogram: Histogram, labelnames: Sequence[str]) -> None:
        self._histogram = histogram
        self._labelnames = tuple(labelnames)

    def observe(self, value: float, labels: Mapping[str, str]) -> None:
        self._histogram.labels(*(labels[name] for name in self._labelnames)).observe(value)


class PrometheusGauge(GaugeInstrument):
    """Bind a labelled Gauge to the label names it was declared with."""

    def __init__(self, gauge: Gauge, labelnames: Sequence[str]) -> None:
        self._gauge = gauge
        self._labelnames = tuple(labelnames)

    def inc(self, labels: Mapping[str, str]) -> None:
        self._gauge.labels(*(labels[name] for name in self._labelnames)).inc()

    def dec(self, labels: Mapping[str, str]) -> None:
        self._gauge.labels(*(labels[name] for name in self._labelnames)).dec()


class PrometheusHttpMetrics:
    """Prometheus-backed HTTP metrics collection.

    Only instruments enabled in ``settings`` are created; the others stay
    ``None`` and never appear in the exposition output.
    """

    def __init__(
        self,
        settings: MetricsSettings | None = None,
        registry: CollectorRegistry | None = None,
    ) -> None:
        self._settings = settings or MetricsSettings()
        self._registry = registry or CollectorRegistry()

        labelnames = request_label_names(self._settings.enable_path_label)

        self.total_requests: PrometheusHistogram | None = None
        self.in_flight_requests: PrometheusGauge | None = None
        self.request_sizes: PrometheusHistogram | None = None
        self.response_sizes: PrometheusHistogram | None = None

        if self._settings.total_requests_enabled:
            self.total_requests = self._histogram(
                "total_requests",
                "HTTP request latency in milliseconds",
                labelnames,
                self._settings.total_requests_range,
            )

        if self._settings.in_flight_requests_enabled:
            gauge = Gauge(
                self._settings.metric_name("in_flight_requests"),
                "Number of HTTP requests currently being handled",
                IN_FLIGHT_LABEL_NAMES,
                registry=self._registry,
            )
            self.in_flight_requests = PrometheusGauge(gauge, IN_FLIGHT_LABEL_NAMES)

        if self._settings.request_sizes_enabled:
            self.request_sizes = self._histogram(
                "request_size_bytes",
                "HTTP request body size in bytes",
                labelnames,
                self._settings.request_sizes_range,
            )

        if self._settings.response_sizes_enabled:
            self.response_sizes = self._histogram(
                "response_size_bytes",
                "HTTP response body size in bytes",
                labelnames,
                self._settings.response_sizes_range,
            )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def _histogram(
        self,
        name: str,
        documentation: str,
        labelnames: Sequence[str],
        bucket_range: tuple[int, int],
    ) -> PrometheusHistogram:
        histogram = Histogram(
            self._settings.metric_name(name),
            documentation,
            labelnames,
            buckets=log_scale_buckets(*bucket_range),
            registry=self._registry,
        )
        return PrometheusHistogram(histogram, labelnames)
