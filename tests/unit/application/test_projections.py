"""Unit tests for projectors and the campaign statistics read model."""

from __future__ import annotations

import asyncio
import dataclasses
from datetime import UTC, datetime
from typing import Any

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from fundly_events.application.event_bus import EventBus
from fundly_events.application.event_store import InMemoryEventStore
from fundly_events.application.projections import (
    CampaignStats,
    CampaignStatsProjector,
    InMemoryProjectionStore,
)
from fundly_events.kernel.events import Event, EventFactory, EventType, SchemaRegistry
from fundly_events.kernel.time import FrozenClock

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

factory = EventFactory(clock=FrozenClock(datetime(2024, 1, 1, tzinfo=UTC)), registry=SchemaRegistry.default())


def created(campaign_id: str = "c-1", goal: float = 100.0) -> Event:
    return factory.create(
        EventType.CAMPAIGN_CREATED,
        {"campaign_id": campaign_id, "user_id": "u-1", "title": "Clean water", "slug": "clean-water", "goal_amount": goal},
    )


def donation(amount: float, donor: str | None = "d-1", campaign_id: str = "c-1", **extra: Any) -> Event:
    payload = {"donation_id": f"don-{amount}-{donor}", "campaign_id": campaign_id, "donor_id": donor, "amount": amount}
    payload.update(extra)
    return factory.create(EventType.DONATION_COMPLETED, payload)


def donation_v2(amount: float, currency: str = "EUR") -> Event:
    return factory.create(
        EventType.DONATION_COMPLETED,
        {"donation_id": "don-v2", "campaign_id": "c-1", "donor_id": "d-9", "amount": amount, "currency": currency},
        version="2.0.0",
    )


def make_projector() -> tuple[CampaignStatsProjector, InMemoryEventStore, InMemoryProjectionStore[CampaignStats]]:
    events = InMemoryEventStore()
    rows: InMemoryProjectionStore[CampaignStats] = InMemoryProjectionStore()
    return CampaignStatsProjector(rows, events), events, rows


async def store_and_project(projector: CampaignStatsProjector, events: InMemoryEventStore, *batch: Event) -> None:
    for event in batch:
        await events.append(event)
        await projector.project(event)


# ---------------------------------------------------------------------------
# CampaignStatsProjector.apply
# ---------------------------------------------------------------------------


class TestCampaignStatsApply:
    def test_created_row(self) -> None:
        projector, _, _ = make_projector()
        row = projector.apply(None, created())
        assert row == CampaignStats(
            campaign_id="c-1", title="Clean water", slug="clean-water", goal_amount=100.0, owner_id="u-1"
        )
        assert row.progress == 0.0

    def test_created_twice_keeps_existing_row(self) -> None:
        projector, _, _ = make_projector()
        row = projector.apply(None, created())
        bumped = projector.apply(row, donation_v2(10))
        assert projector.apply(bumped, created()) is bumped

    def test_event_without_row_is_ignored(self) -> None:
        projector, _, _ = make_projector()
        assert projector.apply(None, donation_v2(10)) is None

    def test_donations_and_refunds(self) -> None:
        projector, _, _ = make_projector()
        row = projector.apply(None, created(goal=50))
        row = projector.apply(row, donation_v2(30))
        row = projector.apply(row, donation_v2(30))
        assert row is not None
        assert row.total_raised == 60
        assert row.donation_count == 2
        assert row.unique_donors == 1
        assert row.goal_reached is True
        assert row.currency == "EUR"
        refund = factory.create(
            EventType.DONATION_REFUNDED,
            {"donation_id": "don-v2", "campaign_id": "c-1", "refund_amount": 20},
        )
        row = projector.apply(row, refund)
        assert row is not None
        assert row.total_raised == 40
        assert row.refund_count == 1
        assert row.total_refunded == 20

    def test_update_status_and_delete_removes_row(self) -> None:
        projector, _, _ = make_projector()
        row = projector.apply(None, created())
        update = factory.create(
            EventType.CAMPAIGN_UPDATED,
            {"campaign_id": "c-1", "user_id": "u-1", "changes": {"title": "Wells", "goal_amount": 200}},
        )
        row = projector.apply(row, update)
        assert row is not None and row.title == "Wells" and row.goal_amount == 200.0
        status = factory.create(
            EventType.CAMPAIGN_STATUS_CHANGED,
            {"campaign_id": "c-1", "previous_status": "active", "new_status": "paused"},
        )
        row = projector.apply(row, status)
        assert row is not None and row.status == "paused"
        deleted = factory.create(EventType.CAMPAIGN_DELETED, {"campaign_id": "c-1", "user_id": "u-1"})
        assert projector.apply(row, deleted) is None

    def test_progress_without_goal_is_zero(self) -> None:
        row = CampaignStats(campaign_id="c-1", title="t", slug="s", goal_amount=0.0, owner_id="u-1", total_raised=10.0)
        assert row.progress == 0.0
        assert dataclasses.replace(row, goal_amount=40.0).progress == 0.25


# ---------------------------------------------------------------------------
# Projector: project / rebuild / drop / attach
# ---------------------------------------------------------------------------


class TestProjector:
    def test_project_upcasts_old_donations(self) -> None:
        async def run() -> None:
            projector, events, rows = make_projector()
            await store_and_project(projector, events, created(), donation(25))
            row = await rows.get("c-1")
            assert row is not None
            assert row.total_raised == 25
            assert row.currency == "USD"

        asyncio.run(run())

    def test_unhandled_types_are_ignored(self) -> None:
        async def run() -> None:
            projector, events, rows = make_projector()
            login = factory.create(EventType.USER_LOGGED_IN, {"user_id": "u-1"})
            await store_and_project(projector, events, login)
            assert rows.snapshot() == {}

        asyncio.run(run())

    def test_rebuild_matches_incremental(self) -> None:
        async def run() -> None:
            projector, events, rows = make_projector()
            await store_and_project(projector, events, created(), donation(10), donation_v2(5), created("c-2"))
            before = await rows.get("c-1")
            await rows.put("c-1", CampaignStats("c-1", "stale", "stale", 1.0, "u-0"))
            assert await projector.rebuild("c-1") == before
            assert await rows.get("c-2") is not None

        asyncio.run(run())

    def test_rebuild_unknown_aggregate(self) -> None:
        async def run() -> None:
            projector, _, _ = make_projector()
            assert await projector.rebuild("nope") is None

        asyncio.run(run())

    def test_deleted_campaign_stays_gone_after_rebuild(self) -> None:
        async def run() -> None:
            projector, events, rows = make_projector()
            deleted = factory.create(EventType.CAMPAIGN_DELETED, {"campaign_id": "c-1", "user_id": "u-1"})
            await store_and_project(projector, events, created(), donation(10), deleted)
            assert await rows.get("c-1") is None
            assert await projector.rebuild("c-1") is None

        asyncio.run(run())

    def test_rebuild_all(self) -> None:
        async def run() -> None:
            projector, events, rows = make_projector()
            for event in (created("c-1"), created("c-2"), donation(3, campaign_id="c-2")):
                await events.append(event)
            assert await projector.rebuild_all() == 3
            assert await rows.keys() == ["c-1", "c-2"]
            row = await rows.get("c-2")
            assert row is not None and row.total_raised == 3

        asyncio.run(run())

    def test_drop(self) -> None:
        async def run() -> None:
            projector, events, rows = make_projector()
            await store_and_project(projector, events, created())
            await projector.drop("c-1")
            assert await rows.get("c-1") is None

        asyncio.run(run())

    def test_attach_follows_the_bus(self) -> None:
        async def run() -> None:
            events = InMemoryEventStore()
            rows: InMemoryProjectionStore[CampaignStats] = InMemoryProjectionStore()
            projector = CampaignStatsProjector(rows, events)
            bus = EventBus(events)
            unsubscribe = projector.attach(bus)
            assert bus.subscriptions() == {"projector:campaign_stats": "*"}
            await bus.publish_batch([created(), donation(7), donation(8, donor="d-2")])
            row = await rows.get("c-1")
            assert row is not None
            assert row.total_raised == 15
            assert row.unique_donors == 2
            unsubscribe()
            await bus.close()

        asyncio.run(run())


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


amounts = st.floats(min_value=0.01, max_value=10_000, allow_nan=False)
donors = st.sampled_from(["d-1", "d-2", "d-3", None])


class TestRebuildProperties:
    @settings(max_examples=40, deadline=None)
    @given(st.lists(st.tuples(amounts, donors), max_size=15))
    def test_rebuild_equals_incremental_projection(self, gifts: list[tuple[float, str | None]]) -> None:
        async def run() -> tuple[CampaignStats | None, CampaignStats | None]:
            projector, events, rows = make_projector()
            await store_and_project(projector, events, created())
            for amount, donor in gifts:
                await store_and_project(projector, events, donation(amount, donor=donor))
            incremental = await rows.get("c-1")
            return incremental, await projector.rebuild("c-1")

        incremental, rebuilt = asyncio.run(run())
        assert rebuilt == incremental
        assert rebuilt is not None
        assert rebuilt.donation_count == len(gifts)
        assert rebuilt.total_raised == pytest.approx(sum(a for a, _ in gifts))
