"""Contextual logging for routemetrics.

Wraps the standard library logger so call sites can bind structured context
once (``logger.with_context(operation="observe")``) and reuse the bound
logger for every subsequent message.
"""

from __future__ import annotations

import logging
from typing import Any, MutableMapping


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that carries a dict of context fields."""

    def __init__(self, base: logging.Logger, context: dict[str, Any] | None = None) -> None:
        super().__init__(base, context or {})

    @property
    def context(self) -> dict[str, Any]:
        return dict(self.extra or {})

    def with_context(self, **fields: Any) -> "ContextualLogger":
        """Return a new logger with ``fields`` merged into the current context."""
        return ContextualLogger(self.logger, {**self.context, **fields})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        if self.extra:
            rendered = " ".join(f"{key}={value}" for key, value in self.extra.items())
            msg = f"{msg} [{rendered}]"
        extra = kwargs.setdefault("extra", {})
        extra.setdefault("context", self.context)
        return msg, kwargs


def configure_logging(level: str = "INFO") -> None:
    """Attach a stream handler to the package logger if none is configured.

    Meant for scripts and the host application; the library never calls it.
    """
    base = logging.getLogger("routemetrics")
    base.setLevel(level)
    if not base.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        base.addHandler(handler)


logger = ContextualLogger(logging.getLogger("routemetrics"))
