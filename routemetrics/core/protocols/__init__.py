"""Core protocols for dependency injection.

The plugin and middleware depend on these protocols only; concrete
Prometheus and in-memory implementations live in ``routemetrics.adapters``.
"""

from routemetrics.core.protocols.http_metrics import GaugeInstrument, HistogramInstrument, HttpMetrics
from routemetrics.core.protocols.metrics_renderer import MetricsRenderer
from routemetrics.core.protocols.metrics_service import MetricsService
from routemetrics.core.protocols.pipeline import (
    PipelinePlugin,
    RequestCall,
    RequestPipeline,
    RouteResolver,
)

__all__ = [
    "GaugeInstrument",
    "HistogramInstrument",
    "HttpMetrics",
    "MetricsRenderer",
    "MetricsService",
    "PipelinePlugin",
    "RequestCall",
    "RequestPipeline",
    "RouteResolver",
]
