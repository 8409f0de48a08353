"""Increment-before / decrement-after tracking for the in-flight gauge."""

from __future__ import annotations

import contextlib
from types import TracebackType
from typing import Awaitable, Callable, ContextManager, Mapping, TypeVar

from routemetrics.core.logging import logger
from routemetrics.core.protocols.http_metrics import GaugeInstrument

T = TypeVar("T")

_log = logger.with_context(operation="in_flight")


class _Tracked:
    """One increment, released by exactly one decrement with the same labels."""

    def __init__(self, gauge: GaugeInstrument, labels: Mapping[str, str]) -> None:
        self._gauge = gauge
        # Snapshot so the decrement cannot see labels mutated during the request.
        self._labels = dict(labels)
        self._incremented = False

    def __enter__(self) -> "_Tracked":
        try:
            self._gauge.inc(self._labels)
        except Exception as e:
            _log.debug(f"In-flight increment failed: {e!r}")
        else:
            self._incremented = True
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if not self._incremented:
            return
        self._incremented = False
        try:
            self._gauge.dec(self._labels)
        except Exception as e:
            _log.debug(f"In-flight decrement failed: {e!r}")


class InFlightGuard:
    """Wrap units of work with the in-flight gauge.

    The decrement runs on every exit path, including exceptions and
    ``asyncio.CancelledError`` raised while the work is suspended. With no
    gauge configured the guard makes no registry calls at all.
    """

    def __init__(self, gauge: GaugeInstrument | None) -> None:
        self._gauge = gauge

    @property
    def enabled(self) -> bool:
        return self._gauge is not None

    def track(self, labels: Mapping[str, str]) -> ContextManager[object]:
        if self._gauge is None:
            return contextlib.nullcontext()
        return _Tracked(self._gauge, labels)

    async def run(self, labels: Mapping[str, str], work: Callable[[], Awaitable[T]]) -> T:
        """Await ``work()`` while counted as in flight under ``labels``."""
        if self._gauge is None:
            return await work()
        with self.track(labels):
            return await work()
