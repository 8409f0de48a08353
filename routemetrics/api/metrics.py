"""Serving ``/metrics`` and wiring instrumentation into a Starlette app.

Two ways to expose the exposition text:

- ``install_metrics`` adds the middleware and a ``/metrics`` route to the
  application itself;
- ``MetricsServer`` is a sidecar aiohttp server on its own port, so
  scrapes never compete with application traffic.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

from aiohttp import web
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response

from routemetrics.api.asgi import MetricsMiddleware
from routemetrics.api.plugin import MetricsPlugin
from routemetrics.api.starlette_routes import StarletteRouteResolver
from routemetrics.core.config import MetricsSettings
from routemetrics.core.logging import logger
from routemetrics.core.metrics_service import build_metrics_service
from routemetrics.core.protocols.metrics_renderer import MetricsRenderer
from routemetrics.core.protocols.metrics_service import MetricsService
from routemetrics.core.timing import Clock

METRICS_PATH = "/metrics"


def metrics_endpoint(renderer: MetricsRenderer) -> Callable[[Request], Awaitable[Response]]:
    """Return a Starlette endpoint that serves ``renderer`` output."""

    async def endpoint(request: Request) -> Response:
        return Response(content=renderer.generate(), media_type=renderer.content_type)

    return endpoint


def install_metrics(
    app: Starlette,
    service: Optional[MetricsService] = None,
    settings: Optional[MetricsSettings] = None,
    *,
    expose: bool = True,
    clock: Optional[Clock] = None,
) -> MetricsService:
    """Instrument ``app`` and optionally expose ``/metrics`` on it.

    Must be called before the app starts serving, because Starlette builds
    its middleware stack on the first request. Only the level of the
    ``routemetrics`` logger is set; handlers are left to the host
    application (see ``configure_logging``).

    Args:
        app: The Starlette/FastAPI application to instrument.
        service: Metrics facade; a Prometheus one is built from ``settings`` if omitted.
        settings: Plugin settings.
        expose: Whether to add the ``/metrics`` route to ``app``.
        clock: Clock override for latency measurement.

    Returns:
        The metrics facade in use.
    """
    settings = settings or MetricsSettings()
    logger.setLevel(settings.log_level)
    service = service or build_metrics_service(settings)

    app.add_middleware(
        MetricsMiddleware,
        plugins=[MetricsPlugin(service.http, settings, clock=clock)],
        route_resolver=StarletteRouteResolver(app.router),
        excluded_paths=settings.excluded_paths,
    )
    if expose:
        app.router.add_route(METRICS_PATH, metrics_endpoint(service.renderer), methods=["GET"])

    logger.with_context(context_base="install_metrics").info(
        f"HTTP metrics installed (prefix={settings.prefix!r}, expose={expose})"
    )
    return service


class MetricsServer:
    """Sidecar aiohttp server that serves ``/metrics`` from a renderer."""

    def __init__(self, renderer: MetricsRenderer, port: int = 9090, host: str = "0.0.0.0") -> None:
        """Initialize the metrics server.

        Args:
            renderer: Renderer whose output is served.
            port: Port to listen on; ``0`` lets the OS pick one.
            host: Interface to bind.
        """
        self._renderer = renderer
        self._port = port
        self._host = host
        self._app = web.Application()
        self._app.add_routes([web.get(METRICS_PATH, self._handle_metrics)])
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None
        self._log = logger.with_context(context_base="metrics_server", port=port)

    async def _handle_metrics(self, request: web.Request) -> web.Response:
        body = self._renderer.generate()
        response = web.Response(body=body)
        # aiohttp rejects a charset inside content_type, so set the raw header.
        response.headers["Content-Type"] = self._renderer.content_type
        return response

    async def start(self) -> None:
        """Bind and start serving."""
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, host=self._host, port=self._port)
        await self._site.start()
        self._log.info(f"Metrics server listening on http://{self._host}:{self._port}{METRICS_PATH}")

    async def stop(self) -> None:
        """Stop the server gracefully; safe to call before ``start``."""
        if self._site:
            await self._site.stop()
            self._site = None
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
