"""Application pipeline – built-in middleware for the event bus."""
from __future__ import annotations

import time
from typing import Sequence

from fundly_events.application.idempotency import IdempotencyKey, ProcessedEventStore
from fundly_events.application.pipeline.middleware import (
    Delivery,
    EventMiddleware,
    HandleNext,
    PublishNext,
)
from fundly_events.kernel.events import Event, SchemaRegistry
from fundly_events.kernel.time import Clock, SystemClock
from fundly_events.observability.logging import get_logger
from fundly_events.observability.metrics import EventMetrics
from fundly_events.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerPolicy,
    CircuitBreakerState,
    CircuitOpenError,
)

logger = get_logger(__name__)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class LoggingMiddleware(EventMiddleware):
    """Logs every publish and handle attempt together with its outcome."""

    async def on_publish(self, events: Sequence[Event], next_: PublishNext) -> None:
        event_ids = [e.event_id for e in events]
        logger.debug("event_bus.publishing", event_ids=event_ids, count=len(events))
        try:
            await next_(events)
        except Exception as exc:
            logger.error("event_bus.publish_failed", event_ids=event_ids, error=repr(exc))
            raise
        for event in events:
            logger.info(
                "event_bus.published",
                event_id=event.event_id,
                event_type=event.event_type,
                correlation_id=event.correlation_id,
            )

    async def on_handle(self, delivery: Delivery, next_: HandleNext) -> None:
        event = delivery.event
        start = time.perf_counter()
        logger.debug(
            "event_bus.handling",
            event_id=event.event_id,
            event_type=event.event_type,
            handler=delivery.handler_name,
            replay=delivery.replay,
        )
        try:
            await next_(delivery)
        except Exception as exc:
            logger.warning(
                "event_bus.handle_failed",
                event_id=event.event_id,
                handler=delivery.handler_name,
                error=repr(exc),
            )
            raise
        logger.info(
            "event_bus.handled",
            event_id=event.event_id,
            handler=delivery.handler_name,
            duration_ms=_elapsed_ms(start),
        )


class ValidationMiddleware(EventMiddleware):
    """Rejects a publish whose payloads do not match the schema registry.

    Runs before the store append, so an invalid event is never stored or
    delivered.  A batch is rejected as a whole.
    """

    def __init__(self, registry: SchemaRegistry) -> None:
        self._registry = registry

    async def on_publish(self, events: Sequence[Event], next_: PublishNext) -> None:
        for event in events:
            self._registry.validate(event)
        await next_(events)


class IdempotencyMiddleware(EventMiddleware):
    """Skips deliveries already processed successfully by the same handler."""

    def __init__(self, store: ProcessedEventStore) -> None:
        self._store = store

    async def on_handle(self, delivery: Delivery, next_: HandleNext) -> None:
        key = IdempotencyKey(delivery.handler_name, delivery.event.event_id)
        if await self._store.is_processed(key):
            logger.info(
                "event_bus.duplicate_skipped",
                event_id=delivery.event.event_id,
                handler=delivery.handler_name,
            )
            return
        await next_(delivery)
        await self._store.mark_processed(key)


class MetricsMiddleware(EventMiddleware):
    """Reports stored events and handler outcomes to :class:`EventMetrics`.

    Placed before :class:`CircuitBreakerMiddleware` so deliveries rejected by
    an open circuit are counted as skipped rather than failed.
    """

    def __init__(self, metrics: EventMetrics) -> None:
        self._metrics = metrics

    @property
    def metrics(self) -> EventMetrics:
        return self._metrics

    async def on_publish(self, events: Sequence[Event], next_: PublishNext) -> None:
        await next_(events)
        for event in events:
            self._metrics.record_published(event.event_type)

    async def on_handle(self, delivery: Delivery, next_: HandleNext) -> None:
        handler, event_type = delivery.handler_name, delivery.event.event_type
        start = time.perf_counter()
        try:
            await next_(delivery)
        except CircuitOpenError:
            self._metrics.record_skipped(handler, event_type)
            raise
        except Exception:
            self._metrics.record_handled(handler, event_type, _elapsed_ms(start), success=False)
            raise
        self._metrics.record_handled(handler, event_type, _elapsed_ms(start), success=True)


class CircuitBreakerMiddleware(EventMiddleware):
    """One :class:`CircuitBreaker` per handler name.

    While a handler's breaker is open its deliveries raise
    :class:`~fundly_events.resilience.circuit_breaker.CircuitOpenError`
    without reaching the handler.
    """

    def __init__(
        self,
        policy: CircuitBreakerPolicy | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._policy = policy or CircuitBreakerPolicy()
        self._clock = clock or SystemClock()
        self._breakers: dict[str, CircuitBreaker] = {}

    def breaker(self, handler_name: str) -> CircuitBreaker:
        breaker = self._breakers.get(handler_name)
        if breaker is None:
            breaker = CircuitBreaker(f"handler:{handler_name}", self._policy, self._clock)
            self._breakers[handler_name] = breaker
        return breaker

    def state(self, handler_name: str) -> CircuitBreakerState:
        """Current breaker state for *handler_name* (CLOSED if never used)."""
        return self.breaker(handler_name).state

    async def on_handle(self, delivery: Delivery, next_: HandleNext) -> None:
        await self.breaker(delivery.handler_name).call(lambda: next_(delivery))


__all__ = [
    "CircuitBreakerMiddleware",
    "IdempotencyMiddleware",
    "LoggingMiddleware",
    "MetricsMiddleware",
    "ValidationMiddleware",
]
