"""Unit tests for the ambient correlation context."""

from __future__ import annotations

import asyncio

from fundly_events.kernel.events import EventFactory, EventType
from fundly_events.observability.correlation import CorrelationContext, RequestContext


class TestRequestContext:
    def test_new_generates_unique_ids(self) -> None:
        a = RequestContext.new()
        b = RequestContext.new(user_id="u-1")
        assert a.correlation_id != b.correlation_id
        assert b.user_id == "u-1"
        assert a.causation_id is None


class TestCorrelationContext:
    def setup_method(self) -> None:
        CorrelationContext.clear()

    def test_get_returns_none_by_default(self) -> None:
        assert CorrelationContext.get() is None

    def test_set_and_get(self) -> None:
        ctx = RequestContext(correlation_id="c-1")
        CorrelationContext.set(ctx)
        assert CorrelationContext.get() is ctx
        CorrelationContext.clear()
        assert CorrelationContext.get() is None

    def test_get_or_new_installs_context(self) -> None:
        ctx = CorrelationContext.get_or_new()
        assert CorrelationContext.get() is ctx
        assert CorrelationContext.get_or_new() is ctx

    def test_scope_restores_previous(self) -> None:
        outer = RequestContext(correlation_id="outer")
        CorrelationContext.set(outer)
        with CorrelationContext.scope(RequestContext(correlation_id="inner")) as inner:
            assert CorrelationContext.get() is inner
        assert CorrelationContext.get() is outer

    def test_tasks_see_their_own_context(self) -> None:
        async def worker(cid: str) -> str | None:
            with CorrelationContext.scope(RequestContext(correlation_id=cid)):
                await asyncio.sleep(0)
                ctx = CorrelationContext.get()
                return ctx.correlation_id if ctx else None

        async def run() -> list[str | None]:
            return list(await asyncio.gather(worker("a"), worker("b")))

        assert asyncio.run(run()) == ["a", "b"]


class TestFactoryUsesAmbientContext:
    def setup_method(self) -> None:
        CorrelationContext.clear()

    def test_inherits_correlation_and_causation(self) -> None:
        factory = EventFactory()
        with CorrelationContext.scope(RequestContext(correlation_id="req-1", causation_id="evt-0")):
            event = factory.create(EventType.USER_LOGGED_IN, {"user_id": "u-1"})
        assert event.correlation_id == "req-1"
        assert event.causation_id == "evt-0"

    def test_explicit_values_win(self) -> None:
        factory = EventFactory()
        with CorrelationContext.scope(RequestContext(correlation_id="req-1", causation_id="evt-0")):
            event = factory.create(
                EventType.USER_LOGGED_IN,
                {"user_id": "u-1"},
                correlation_id="saga-1",
            )
        assert event.correlation_id == "saga-1"
        assert event.causation_id is None

    def test_no_context_means_no_correlation(self) -> None:
        event = EventFactory().create(EventType.USER_LOGGED_IN, {"user_id": "u-1"})
        assert event.correlation_id is None
