"""Per-request label set shared by all HTTP instruments."""

from __future__ import annotations

from dataclasses import dataclass

from routemetrics.core.routes import RouteNode, route_label

# Label names in the order instruments declare them.
METHOD = "method"
RESPONSE_CODE = "response_code"
ROUTE = "route"
PATH = "path"

REQUEST_LABEL_NAMES: tuple[str, ...] = (METHOD, RESPONSE_CODE, ROUTE)
IN_FLIGHT_LABEL_NAMES: tuple[str, ...] = (METHOD,)


def request_label_names(enable_path_label: bool) -> tuple[str, ...]:
    return (*REQUEST_LABEL_NAMES, PATH) if enable_path_label else REQUEST_LABEL_NAMES


@dataclass
class HttpRequestLabels:
    """Labels describing a single HTTP request.

    ``status_code`` is unknown until the response starts; ``path`` is only
    filled when the raw path label is enabled.
    """

    method: str = ""
    status_code: int | None = None
    route: RouteNode | None = None
    path: str | None = None

    def to_dict(self) -> dict[str, str]:
        """Render every label to its string value."""
        values = {
            METHOD: self.method,
            RESPONSE_CODE: "" if self.status_code is None else str(self.status_code),
            ROUTE: route_label(self.route),
        }
        if self.path is not None:
            values[PATH] = self.path
        return values

    def in_flight(self) -> dict[str, str]:
        """Labels known at request entry, used by the in-flight gauge."""
        return {METHOD: self.method}
