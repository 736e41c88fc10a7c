"""Application – middleware pipeline around event publish and delivery."""
from fundly_events.application.pipeline.middleware import (
    Delivery,
    EventMiddleware,
    HandleNext,
    PublishNext,
)
from fundly_events.application.pipeline.middlewares import (
    CircuitBreakerMiddleware,
    IdempotencyMiddleware,
    LoggingMiddleware,
    MetricsMiddleware,
    ValidationMiddleware,
)
from fundly_events.application.pipeline.pipeline import Pipeline

__all__ = [
    "CircuitBreakerMiddleware",
    "Delivery",
    "EventMiddleware",
    "HandleNext",
    "IdempotencyMiddleware",
    "LoggingMiddleware",
    "MetricsMiddleware",
    "Pipeline",
    "PublishNext",
    "ValidationMiddleware",
]
