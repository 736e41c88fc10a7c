"""Observability – configure_logging."""
from __future__ import annotations

import logging
from typing import Any

import structlog

from fundly_events.observability.logging.processors import CorrelationProcessor


def configure_logging(level: int | str = logging.INFO, json: bool = True) -> None:
    """Route structlog through stdlib ``logging`` with a single root handler.

    With ``json=True`` every record is rendered as one JSON object per line;
    otherwise the structlog console renderer is used.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        CorrelationProcessor(),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    renderer: Any = (
        structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


__all__ = ["configure_logging"]
