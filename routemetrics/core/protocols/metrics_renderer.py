"""MetricsRenderer protocol for serializing collected metrics.

Separates *serialization* (serving /metrics) from *collection*
(HttpMetrics, process and custom collectors), so the collection
protocols stay free of exposition concerns like content type.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsRenderer(Protocol):
    """Protocol for rendering every registered metric group into scrape text."""

    @property
    def content_type(self) -> str:
        """MIME type of the rendered output."""
        ...

    def generate(self) -> bytes:
        """Collect all groups and serialize them into the exposition format."""
        ...
