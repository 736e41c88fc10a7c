"""Observability – structlog processors and get_logger helper."""
from __future__ import annotations

from typing import Any

import structlog

from fundly_events.observability.correlation import CorrelationContext


class CorrelationProcessor:
    """structlog processor that injects the active :class:`RequestContext`.

    Adds ``correlation_id`` and, when set, ``causation_id`` and ``user_id``
    without overwriting values bound explicitly by the caller.
    """

    def __call__(
        self,
        logger: Any,           # noqa: ARG002
        method_name: str,      # noqa: ARG002
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        ctx = CorrelationContext.get()
        if ctx is not None:
            event_dict.setdefault("correlation_id", ctx.correlation_id)
            if ctx.causation_id is not None:
                event_dict.setdefault("causation_id", ctx.causation_id)
            if ctx.user_id is not None:
                event_dict.setdefault("user_id", ctx.user_id)
        return event_dict


def get_logger(name: str | None = None, **initial_values: Any) -> Any:
    """structlog logger for module *name* with *initial_values* already bound."""
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


__all__ = ["CorrelationProcessor", "get_logger"]
