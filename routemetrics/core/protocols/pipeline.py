"""RequestPipeline protocol for the host server the plugin attaches to.

The plugin never talks to a framework directly. It registers three
callbacks against a pipeline and reads request facts from a ``RequestCall``.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, MutableMapping, Optional, Protocol, runtime_checkable

from routemetrics.core.routes import RouteNode


@runtime_checkable
class RequestCall(Protocol):
    """Read surface of one in-progress request."""

    @property
    def method(self) -> str: ...

    @property
    def path(self) -> str: ...

    @property
    def status_code(self) -> Optional[int]:
        """Response status, ``None`` until the response starts."""
        ...

    @property
    def request_size(self) -> Optional[int]:
        """Inbound body size in bytes, ``None`` when the transport cannot tell."""
        ...

    @property
    def attributes(self) -> MutableMapping[str, Any]:
        """Per-request scratch space owned by the pipeline."""
        ...


RouteMatchedCallback = Callable[[RequestCall, Optional[RouteNode]], None]
Proceed = Callable[[], Awaitable[None]]
Interceptor = Callable[[RequestCall, Proceed], Awaitable[None]]
ResponseCallback = Callable[[RequestCall, Optional[int]], None]


@runtime_checkable
class RequestPipeline(Protocol):
    """Protocol for a host pipeline exposing three interception points."""

    def on_route_matched(self, callback: RouteMatchedCallback) -> None:
        """Call ``callback`` once per request when route matching completes."""
        ...

    def intercept(self, interceptor: Interceptor) -> None:
        """Wrap handler execution; the interceptor must await ``proceed()`` exactly once."""
        ...

    def on_response(self, callback: ResponseCallback) -> None:
        """Call ``callback`` once the response headers are final, with the content length if known."""
        ...


@runtime_checkable
class RouteResolver(Protocol):
    """Maps an incoming request to the route node it matches."""

    def resolve(self, scope: MutableMapping[str, Any]) -> Optional[RouteNode]:
        """Return the matched route node, or ``None`` when nothing matches."""
        ...


@runtime_checkable
class PipelinePlugin(Protocol):
    """Anything that attaches itself to a ``RequestPipeline``."""

    def install(self, pipeline: RequestPipeline) -> None: ...
