"""Unit tests for SchemaRegistry."""

from __future__ import annotations

import pytest
from pydantic import BaseModel

from fundly_events.kernel.events import Event, EventType, EventValidationError, SchemaRegistry


class TestDefaultCatalog:
    def test_every_type_has_a_v1_schema(self) -> None:
        registry = SchemaRegistry.default()
        for event_type in EventType:
            assert registry.is_registered(event_type), event_type

    def test_donation_completed_has_two_versions(self) -> None:
        registry = SchemaRegistry.default()
        assert registry.versions(EventType.DONATION_COMPLETED) == ["1.0.0", "2.0.0"]

    def test_len_counts_type_version_pairs(self) -> None:
        assert len(SchemaRegistry.default()) == len(EventType) + 1


class TestValidation:
    def test_valid_payload_is_normalised(self) -> None:
        registry = SchemaRegistry.default()
        data = registry.validate_payload(
            EventType.DONATION_INITIATED,
            {"donation_id": "d-1", "campaign_id": "c-1", "amount": 10},
        )
        assert data["currency"] == "USD"
        assert data["donor_id"] is None

    def test_unknown_keys_rejected(self) -> None:
        registry = SchemaRegistry.default()
        with pytest.raises(EventValidationError) as exc_info:
            registry.validate_payload(EventType.USER_LOGGED_IN, {"user_id": "u", "extra": 1})
        assert exc_info.value.errors
        assert exc_info.value.event_type == "user.logged_in"

    def test_missing_field_reported_with_location(self) -> None:
        registry = SchemaRegistry.default()
        with pytest.raises(EventValidationError) as exc_info:
            registry.validate_payload(EventType.CAMPAIGN_DELETED, {"campaign_id": "c"})
        assert ["user_id"] in [err["loc"] for err in exc_info.value.errors]

    def test_bad_slug_rejected(self) -> None:
        registry = SchemaRegistry.default()
        with pytest.raises(EventValidationError):
            registry.validate_payload(
                EventType.CAMPAIGN_CREATED,
                {"campaign_id": "c", "user_id": "u", "title": "T", "slug": "Not A Slug", "goal_amount": 1},
            )

    def test_unregistered_version_rejected(self) -> None:
        registry = SchemaRegistry.default()
        with pytest.raises(EventValidationError):
            registry.validate_payload(EventType.USER_LOGGED_IN, {"user_id": "u"}, "9.9.9")

    def test_v2_requires_currency(self) -> None:
        registry = SchemaRegistry.default()
        payload = {"donation_id": "d", "campaign_id": "c", "amount": 5}
        with pytest.raises(EventValidationError):
            registry.validate_payload(EventType.DONATION_COMPLETED, payload, "2.0.0")
        data = registry.validate_payload(EventType.DONATION_COMPLETED, {**payload, "currency": "EUR"}, "2.0.0")
        assert data["currency"] == "EUR"

    def test_validate_event(self) -> None:
        registry = SchemaRegistry.default()
        event = Event(event_type=EventType.USER_LOGGED_IN, payload={"user_id": "u"})
        assert registry.validate(event)["login_method"] == "email"


class TestCustomRegistration:
    def test_register_and_json_schema(self) -> None:
        class Ping(BaseModel):
            seq: int

        registry = SchemaRegistry()
        registry.register("test.ping", Ping)
        assert registry.validate_payload("test.ping", {"seq": "3"}) == {"seq": 3}
        assert registry.json_schema("test.ping")["properties"]["seq"]["type"] == "integer"
        assert list(registry) == [("test.ping", "1.0.0")]

    def test_json_schema_unknown_raises_key_error(self) -> None:
        with pytest.raises(KeyError):
            SchemaRegistry().json_schema("nope.nope")
