"""Build ``RouteNode`` chains from a Starlette (or FastAPI) route table.

Matching follows Starlette's router: the first full match wins, otherwise the
first partial match (a path hit with the wrong method). ``Mount`` prefixes
become parent segments of the routes below them, ``Host`` routes and the
HTTP method leaf are unlabelled nodes.
"""

from __future__ import annotations

from typing import Any, MutableMapping, Optional, Sequence, Union

from starlette.routing import BaseRoute, Host, Match, Mount

from routemetrics.core.routes import RouteNode, SelectorKind, parse_route_template

# Segment given to a mounted application that has no route table of its own.
_MOUNTED_APP_TAIL = "{path:path}"


def matched_route_node(
    scope: MutableMapping[str, Any], initial_scope: MutableMapping[str, Any]
) -> Optional[RouteNode]:
    """Build the route node from the route the router already stored on ``scope``.

    FastAPI routes put themselves under ``scope["route"]`` when they match.
    The stored path is relative to the innermost ``Mount``, so it is only
    used when routing did not descend into one (``root_path`` is unchanged).
    Returns ``None`` when the scope carries no usable route.
    """
    route = scope.get("route")
    # Present on arrival means it was matched by an outer router, not this one.
    if route is None or route is initial_scope.get("route"):
        return None
    path = getattr(route, "path", None)
    if not isinstance(path, str):
        return None
    if scope.get("root_path", "") != initial_scope.get("root_path", ""):
        return None
    return parse_route_template(path).child(SelectorKind.OTHER, scope.get("method", ""))


class StarletteRouteResolver:
    """Resolve the route node for an ASGI scope against a Starlette route table.

    ``routes`` may be a list of routes or any object with a ``routes``
    attribute (a ``Router`` or ``Starlette`` app), which is read on every
    call so routes registered after construction are still seen.
    """

    def __init__(self, routes: Union[Sequence[BaseRoute], Any]) -> None:
        self._routes = routes

    def _table(self) -> Sequence[BaseRoute]:
        routes = getattr(self._routes, "routes", self._routes)
        return list(routes or [])

    def resolve(self, scope: MutableMapping[str, Any]) -> Optional[RouteNode]:
        return self._match(self._table(), dict(scope), RouteNode.root())

    def _match(
        self,
        routes: Sequence[BaseRoute],
        scope: dict[str, Any],
        parent: RouteNode,
    ) -> Optional[RouteNode]:
        partial: Optional[tuple[BaseRoute, dict[str, Any]]] = None
        for route in routes:
            match, child_scope = route.matches(scope)
            if match is Match.FULL:
                return self._node_for(route, {**scope, **child_scope}, parent)
            if match is Match.PARTIAL and partial is None:
                partial = (route, child_scope)
        if partial is not None:
            route, child_scope = partial
            return self._node_for(route, {**scope, **child_scope}, parent)
        return None

    def _node_for(self, route: BaseRoute, scope: dict[str, Any], parent: RouteNode) -> Optional[RouteNode]:
        if isinstance(route, Mount):
            node = parse_route_template(route.path, parent)
            children = route.routes
            if not children:
                return parse_route_template(_MOUNTED_APP_TAIL, node)
            return self._match(children, scope, node)

        if isinstance(route, Host):
            return self._match(route.routes, scope, parent.child(SelectorKind.OTHER, route.host))

        path = getattr(route, "path", None)
        if path is None:
            return parent.child(SelectorKind.OTHER)
        return parse_route_template(path, parent).child(SelectorKind.OTHER, scope.get("method", ""))
