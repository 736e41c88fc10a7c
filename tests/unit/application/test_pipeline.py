"""Unit tests for the middleware Pipeline and the built-in middleware."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Sequence

import pytest

from fundly_events.application.idempotency import IdempotencyKey, InMemoryProcessedEventStore
from fundly_events.application.pipeline import (
    CircuitBreakerMiddleware,
    Delivery,
    EventMiddleware,
    HandleNext,
    IdempotencyMiddleware,
    LoggingMiddleware,
    MetricsMiddleware,
    Pipeline,
    PublishNext,
    ValidationMiddleware,
)
from fundly_events.kernel.events import Event, EventType, EventValidationError, SchemaRegistry
from fundly_events.kernel.time import FrozenClock
from fundly_events.observability.metrics import EventMetrics, InMemoryMetrics
from fundly_events.resilience.circuit_breaker import (
    CircuitBreakerPolicy,
    CircuitBreakerState,
    CircuitOpenError,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class Tracer(EventMiddleware):
    def __init__(self, name: str, log: list[str]) -> None:
        self._name = name
        self._log = log

    async def on_publish(self, events: Sequence[Event], next_: PublishNext) -> None:
        self._log.append(f"{self._name}:before")
        await next_(events)
        self._log.append(f"{self._name}:after")

    async def on_handle(self, delivery: Delivery, next_: HandleNext) -> None:
        self._log.append(f"{self._name}:handle")
        await next_(delivery)


def _event() -> Event:
    return Event(event_type=EventType.USER_LOGGED_IN, payload={"user_id": "u-1"})


def _clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 1, 1, tzinfo=UTC))


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class TestPipeline:
    def test_empty_pipeline_calls_terminal(self) -> None:
        async def run() -> None:
            seen: list[Sequence[Event]] = []

            async def terminal(events: Sequence[Event]) -> None:
                seen.append(events)

            event = _event()
            await Pipeline().publish([event], terminal)
            assert seen == [[event]]

        asyncio.run(run())

    def test_first_added_is_outermost(self) -> None:
        async def run() -> None:
            log: list[str] = []

            async def terminal(events: Sequence[Event]) -> None:
                log.append("terminal")

            pipeline = Pipeline().add(Tracer("a", log)).add(Tracer("b", log))
            await pipeline.publish([_event()], terminal)
            assert log == ["a:before", "b:before", "terminal", "b:after", "a:after"]

        asyncio.run(run())

    def test_handle_path_uses_same_order(self) -> None:
        async def run() -> None:
            log: list[str] = []

            async def terminal(delivery: Delivery) -> None:
                log.append(f"handled:{delivery.handler_name}")

            pipeline = Pipeline([Tracer("a", log), Tracer("b", log)])
            await pipeline.handle(Delivery(_event(), "h"), terminal)
            assert log == ["a:handle", "b:handle", "handled:h"]

        asyncio.run(run())

    def test_default_middleware_passes_through(self) -> None:
        async def run() -> None:
            calls: list[str] = []

            async def terminal(delivery: Delivery) -> None:
                calls.append(delivery.handler_name)

            await Pipeline([EventMiddleware()]).handle(Delivery(_event(), "h"), terminal)
            assert calls == ["h"]

        asyncio.run(run())


class TestLoggingMiddleware:
    def test_reraises_handler_errors(self) -> None:
        async def run() -> None:
            async def terminal(delivery: Delivery) -> None:
                raise RuntimeError("boom")

            with pytest.raises(RuntimeError):
                await Pipeline([LoggingMiddleware()]).handle(Delivery(_event(), "h"), terminal)

        asyncio.run(run())


class TestValidationMiddleware:
    def test_invalid_event_never_reaches_terminal(self) -> None:
        async def run() -> None:
            reached: list[bool] = []

            async def terminal(events: Sequence[Event]) -> None:
                reached.append(True)

            bad = Event(event_type=EventType.USER_LOGGED_IN, payload={"nope": 1})
            pipeline = Pipeline([ValidationMiddleware(SchemaRegistry.default())])
            with pytest.raises(EventValidationError):
                await pipeline.publish([_event(), bad], terminal)
            assert reached == []

        asyncio.run(run())


class TestIdempotency:
    def test_store_expires_records(self) -> None:
        async def run() -> None:
            clock = _clock()
            store = InMemoryProcessedEventStore(ttl_seconds=60, clock=clock)
            key = IdempotencyKey("h", "e-1")
            await store.mark_processed(key)
            assert await store.is_processed(key)
            clock.advance(seconds=61)
            assert not await store.is_processed(key)

        asyncio.run(run())

    def test_key_str(self) -> None:
        assert str(IdempotencyKey("h", "e-1")) == "h:e-1"

    def test_second_delivery_skipped(self) -> None:
        async def run() -> None:
            calls: list[str] = []

            async def terminal(delivery: Delivery) -> None:
                calls.append(delivery.handler_name)

            pipeline = Pipeline([IdempotencyMiddleware(InMemoryProcessedEventStore())])
            event = _event()
            await pipeline.handle(Delivery(event, "h"), terminal)
            await pipeline.handle(Delivery(event, "h"), terminal)
            await pipeline.handle(Delivery(event, "other"), terminal)
            assert calls == ["h", "other"]

        asyncio.run(run())

    def test_failed_delivery_not_marked(self) -> None:
        async def run() -> None:
            attempts: list[int] = []

            async def terminal(delivery: Delivery) -> None:
                attempts.append(1)
                if len(attempts) == 1:
                    raise RuntimeError("first time fails")

            pipeline = Pipeline([IdempotencyMiddleware(InMemoryProcessedEventStore())])
            event = _event()
            with pytest.raises(RuntimeError):
                await pipeline.handle(Delivery(event, "h"), terminal)
            await pipeline.handle(Delivery(event, "h"), terminal)
            assert len(attempts) == 2

        asyncio.run(run())


class TestCircuitBreakerMiddleware:
    def test_opens_per_handler(self) -> None:
        async def run() -> None:
            async def terminal(delivery: Delivery) -> None:
                if delivery.handler_name == "bad":
                    raise RuntimeError("fail")

            breakers = CircuitBreakerMiddleware(CircuitBreakerPolicy(failure_threshold=2), _clock())
            pipeline = Pipeline([breakers])
            for _ in range(2):
                with pytest.raises(RuntimeError):
                    await pipeline.handle(Delivery(_event(), "bad"), terminal)
            assert breakers.state("bad") == CircuitBreakerState.OPEN
            assert breakers.state("good") == CircuitBreakerState.CLOSED
            with pytest.raises(CircuitOpenError):
                await pipeline.handle(Delivery(_event(), "bad"), terminal)
            await pipeline.handle(Delivery(_event(), "good"), terminal)

        asyncio.run(run())


class TestMetricsMiddleware:
    def test_counts_published_only_after_terminal_succeeds(self) -> None:
        async def run() -> None:
            metrics = EventMetrics(clock=_clock())
            pipeline = Pipeline([MetricsMiddleware(metrics)])

            async def stored(events: Sequence[Event]) -> None:
                pass

            async def rejected(events: Sequence[Event]) -> None:
                raise RuntimeError("append failed")

            await pipeline.publish([_event(), _event()], stored)
            with pytest.raises(RuntimeError):
                await pipeline.publish([_event()], rejected)
            assert metrics.published_by_type() == {"user.logged_in": 2}

        asyncio.run(run())

    def test_handler_outcomes(self) -> None:
        async def run() -> None:
            backend = InMemoryMetrics()
            metrics = EventMetrics(backend, clock=_clock())
            breakers = CircuitBreakerMiddleware(CircuitBreakerPolicy(failure_threshold=1), _clock())
            pipeline = Pipeline([MetricsMiddleware(metrics), breakers])

            async def terminal(delivery: Delivery) -> None:
                if delivery.handler_name == "bad":
                    raise RuntimeError("fail")

            await pipeline.handle(Delivery(_event(), "good"), terminal)
            with pytest.raises(RuntimeError):
                await pipeline.handle(Delivery(_event(), "bad"), terminal)
            with pytest.raises(CircuitOpenError):
                await pipeline.handle(Delivery(_event(), "bad"), terminal)

            good, bad = metrics.handler("good"), metrics.handler("bad")
            assert (good.processed, good.failed, good.skipped) == (1, 0, 0)
            assert (bad.processed, bad.failed, bad.skipped) == (0, 1, 1)
            labels = {"handler": "bad", "event_type": "user.logged_in"}
            assert backend.value("events.handled", outcome="failure", **labels) == 1
            assert backend.value("events.handled", outcome="skipped", **labels) == 1
            assert len(backend.samples("events.handle_duration", handler="good")) == 1

        asyncio.run(run())
