"""Unit tests for EventUpcaster."""

from __future__ import annotations

import pytest

from fundly_events.kernel.events import Event, EventType, EventUpcaster, UpcastError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _donation_v1() -> Event:
    return Event(
        event_type=EventType.DONATION_COMPLETED,
        payload={"donation_id": "d-1", "campaign_id": "c-1", "amount": 25.0},
    )


class TestDefaultMigrations:
    def test_donation_completed_gets_usd(self) -> None:
        upcast = EventUpcaster.default().upcast(_donation_v1(), "2.0.0")
        assert upcast.version == "2.0.0"
        assert upcast.payload["currency"] == "USD"
        assert upcast.metadata["original_version"] == "1.0.0"

    def test_original_event_untouched(self) -> None:
        original = _donation_v1()
        upcast = EventUpcaster.default().upcast(original, "2.0.0")
        assert "currency" not in original.payload
        assert upcast.event_id == original.event_id

    def test_same_version_returns_same_event(self) -> None:
        event = _donation_v1()
        assert EventUpcaster.default().upcast(event, "1.0.0") is event


class TestPaths:
    def test_chain_of_migrations(self) -> None:
        upcaster = EventUpcaster()
        upcaster.register("test.thing", "1.0.0", "1.1.0", lambda p: {**p, "a": 1})
        upcaster.register("test.thing", "1.1.0", "2.0.0", lambda p: {**p, "b": 2})
        event = Event(event_type="test.thing", payload={})
        result = upcaster.upcast(event, "2.0.0")
        assert dict(result.payload) == {"a": 1, "b": 2}

    def test_shortest_path_is_used(self) -> None:
        upcaster = EventUpcaster()
        upcaster.register("test.thing", "1.0.0", "1.1.0", lambda p: {**p, "via": "long"})
        upcaster.register("test.thing", "1.1.0", "2.0.0", lambda p: {**p, "hops": p.get("hops", 0) + 1})
        upcaster.register("test.thing", "1.0.0", "2.0.0", lambda p: {**p, "via": "direct"})
        result = upcaster.upcast(Event(event_type="test.thing", payload={}), "2.0.0")
        assert result.payload["via"] == "direct"
        assert "hops" not in result.payload

    def test_no_path_raises(self) -> None:
        upcaster = EventUpcaster()
        upcaster.register("test.thing", "1.0.0", "2.0.0", lambda p: p)
        with pytest.raises(UpcastError):
            upcaster.upcast(Event(event_type="test.thing", payload={}, version="2.0.0"), "1.0.0")

    def test_can_upcast_and_versions(self) -> None:
        upcaster = EventUpcaster.default()
        assert upcaster.can_upcast(EventType.DONATION_COMPLETED, "1.0.0", "2.0.0")
        assert not upcaster.can_upcast(EventType.DONATION_COMPLETED, "2.0.0", "1.0.0")
        assert upcaster.versions(EventType.DONATION_COMPLETED) == ["1.0.0", "2.0.0"]
        assert upcaster.versions(EventType.USER_LOGGED_IN) == []
