"""Metrics renderer adapters."""

from routemetrics.adapters.metrics_renderer.fake import FakeMetricsRenderer
from routemetrics.adapters.metrics_renderer.prometheus import PrometheusMetricsRenderer

__all__ = ["PrometheusMetricsRenderer", "FakeMetricsRenderer"]
