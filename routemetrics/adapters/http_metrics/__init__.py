"""HTTP metrics adapters."""

from routemetrics.adapters.http_metrics.fake import FakeHttpMetrics
from routemetrics.adapters.http_metrics.prometheus import PrometheusHttpMetrics

__all__ = ["PrometheusHttpMetrics", "FakeHttpMetrics"]
