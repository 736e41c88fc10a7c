"""Observability – structured logging helpers."""
from fundly_events.observability.logging.factory import configure_logging
from fundly_events.observability.logging.processors import CorrelationProcessor, get_logger

__all__ = ["CorrelationProcessor", "configure_logging", "get_logger"]
