"""Pure ASGI middleware exposing the ``RequestPipeline`` interception points.

Plugins are installed when the middleware is constructed, which is how
Starlette builds middleware (lazily, from ``add_middleware`` kwargs)::

    app.add_middleware(
        MetricsMiddleware,
        plugins=[MetricsPlugin(service.http, settings)],
        route_resolver=StarletteRouteResolver(app.router),
    )

Sizes come from metadata that is already available: the request
``Content-Length`` header (``0`` when the request carries neither it nor
``Transfer-Encoding``, or the bytes the application actually read, when it
read a whole chunked body) and the response ``Content-Length`` header. A
streaming response without a length, or any response to ``HEAD``, reports
``None``.

The route is taken from ``scope["route"]`` when the router stored one there,
and otherwise resolved against the route table.
"""

from __future__ import annotations

import functools
from typing import Any, MutableMapping, Optional, Sequence

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from routemetrics.api.starlette_routes import matched_route_node
from routemetrics.core.logging import logger
from routemetrics.core.protocols.pipeline import (
    Interceptor,
    PipelinePlugin,
    Proceed,
    ResponseCallback,
    RouteMatchedCallback,
    RouteResolver,
)
from routemetrics.core.routes import RouteNode

# Status reported when the application raised before starting a response.
UNHANDLED_ERROR_STATUS = 500


def _parse_length(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        length = int(value)
    except ValueError:
        return None
    return length if length >= 0 else None


class AsgiCall:
    """``RequestCall`` view over one ASGI HTTP connection."""

    def __init__(self, scope: Scope) -> None:
        self.scope = scope
        self._headers = Headers(raw=list(scope.get("headers", [])))
        self._content_length = _parse_length(self._headers.get("content-length"))
        # Without either framing header an HTTP/1.1 request has no body.
        self._framed = "content-length" in self._headers or "transfer-encoding" in self._headers
        self._bytes_received = 0
        self._body_complete = False
        self.status_code: Optional[int] = None
        self.attributes: MutableMapping[str, Any] = {}
        self.route_notified = False

    @property
    def method(self) -> str:
        return self.scope.get("method", "GET")

    @property
    def path(self) -> str:
        return self.scope.get("path", "/")

    @property
    def request_size(self) -> Optional[int]:
        if self._content_length is not None:
            return self._content_length
        if not self._framed:
            return 0
        if self._body_complete:
            return self._bytes_received
        return None

    def body_received(self, message: Message) -> None:
        self._bytes_received += len(message.get("body", b""))
        if not message.get("more_body", False):
            self._body_complete = True


class MetricsMiddleware:
    """ASGI middleware implementing the ``RequestPipeline`` protocol."""

    def __init__(
        self,
        app: ASGIApp,
        plugins: Sequence[PipelinePlugin] = (),
        route_resolver: RouteResolver | None = None,
        excluded_paths: Sequence[str] = (),
    ) -> None:
        self.app = app
        self._route_resolver = route_resolver
        self._excluded_paths = frozenset(excluded_paths)
        self._route_callbacks: list[RouteMatchedCallback] = []
        self._interceptors: list[Interceptor] = []
        self._response_callbacks: list[ResponseCallback] = []
        self._log = logger.with_context(context_base="asgi_pipeline")
        for plugin in plugins:
            plugin.install(self)

    # -- RequestPipeline --

    def on_route_matched(self, callback: RouteMatchedCallback) -> None:
        self._route_callbacks.append(callback)

    def intercept(self, interceptor: Interceptor) -> None:
        self._interceptors.append(interceptor)

    def on_response(self, callback: ResponseCallback) -> None:
        self._response_callbacks.append(callback)

    # -- ASGI --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path") in self._excluded_paths:
            await self.app(scope, receive, send)
            return

        call = AsgiCall(scope)
        # Routing mutates the live scope; match against what the request looked like on arrival.
        initial_scope = dict(scope)

        async def receive_wrapper() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                call.body_received(message)
            return message

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                call.status_code = message["status"]
                self._notify_route(call, scope, initial_scope)
                # A HEAD response advertises the GET body's length but sends no body.
                content_length = None
                if call.method != "HEAD":
                    headers = Headers(raw=message.get("headers", []))
                    content_length = _parse_length(headers.get("content-length"))
                self._notify_response(call, content_length)
            await send(message)

        async def handle() -> None:
            try:
                await self.app(scope, receive_wrapper, send_wrapper)
            except BaseException:
                if call.status_code is None:
                    call.status_code = UNHANDLED_ERROR_STATUS
                raise
            finally:
                self._notify_route(call, scope, initial_scope)

        proceed: Proceed = handle
        for interceptor in reversed(self._interceptors):
            proceed = functools.partial(interceptor, call, proceed)
        await proceed()

    def _resolve(self, scope: Scope) -> Optional[RouteNode]:
        if self._route_resolver is None:
            return None
        try:
            return self._route_resolver.resolve(scope)
        except Exception as e:
            self._log.debug(f"Route resolution failed for {scope.get('path')!r}: {e!r}")
            return None

    def _notify_route(self, call: AsgiCall, scope: Scope, initial_scope: Scope) -> None:
        if call.route_notified:
            return
        call.route_notified = True
        if not self._route_callbacks:
            return
        route = matched_route_node(scope, initial_scope)
        if route is None:
            route = self._resolve(initial_scope)
        for callback in self._route_callbacks:
            callback(call, route)

    def _notify_response(self, call: AsgiCall, content_length: Optional[int]) -> None:
        for callback in self._response_callbacks:
            callback(call, content_length)
