"""Fake metrics service for testing."""

from __future__ import annotations

from typing import Any


class FakeMetricsService:
    """In-memory MetricsService stand-in for testing.

    Structurally satisfies the ``MetricsService`` protocol and records
    start/stop calls instead of binding a port.
    """

    def __init__(self, http: Any, renderer: Any, process: Any = None, custom: Any = None) -> None:
        self.http = http
        self.renderer = renderer
        self.process = process
        self.custom = custom
        self.started_on: tuple[str, int] | None = None
        self.stopped: bool = False

    async def start(self, *, host: str, port: int) -> None:
        self.started_on = (host, port)

    async def stop(self) -> None:
        self.stopped = True
