"""Exceptions raised by routemetrics."""


class RouteMetricsError(Exception):
    """Base class for all routemetrics errors."""


class MetricsConfigError(RouteMetricsError):
    """Raised when metrics settings cannot be turned into instruments."""


class UnknownClockError(RouteMetricsError):
    """Raised when a timing backend is unknown or unavailable on this platform."""

    def __init__(self, name: str, reason: str = "unknown timing backend") -> None:
        self.name = name
        super().__init__(f"{reason}: {name!r}")
