"""Unit tests for the error hierarchy."""

from __future__ import annotations

import json

from fundly_events.application.event_store import EventStoreError
from fundly_events.application.saga import SagaNotFoundError, UnknownSagaTypeError
from fundly_events.campaigns import SlugTakenError
from fundly_events.config.validation import (
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)
from fundly_events.kernel.errors import (
    ApplicationError,
    BaseError,
    ConflictError,
    DomainError,
    InfrastructureError,
    NotFoundError,
    ValidationError,
)
from fundly_events.kernel.events import DuplicateEventError, EventValidationError, UpcastError
from fundly_events.resilience.circuit_breaker import CircuitOpenError


class TestBaseError:
    def test_message_and_str(self) -> None:
        err = BaseError("something went wrong")
        assert err.message == "something went wrong"
        assert str(err) == "something went wrong"

    def test_codes(self) -> None:
        assert BaseError("m").code == "error"
        assert BaseError("m", code="custom").code == "custom"
        assert repr(NotFoundError("Saga", "s-1")) == "NotFoundError(not_found: Saga 's-1' not found)"

    def test_to_dict(self) -> None:
        err = BaseError("m", code="my_code", detail={"key": "val"})
        assert err.to_dict() == {"type": "BaseError", "code": "my_code", "message": "m", "detail": {"key": "val"}}
        assert "detail" not in BaseError("m").to_dict()

    def test_cause(self) -> None:
        cause = RuntimeError("root")
        err = BaseError("wrap", cause=cause)
        assert err.__cause__ is cause
        assert "root" in err.to_dict()["cause"]

    def test_to_json(self) -> None:
        parsed = json.loads(BaseError("oops", code="oops", detail={"x": 1}).to_json())
        assert parsed["code"] == "oops"
        assert parsed["detail"] == {"x": 1}

    def test_retryable_by_category(self) -> None:
        assert BaseError.retryable is True
        assert InfrastructureError.retryable is True
        assert DomainError.retryable is False
        assert SlugTakenError.retryable is False


class TestDomainErrors:
    def test_validation_error_carries_errors(self) -> None:
        err = ValidationError("bad", errors=[{"loc": ["a"], "msg": "required"}])
        assert err.to_dict()["errors"] == [{"loc": ["a"], "msg": "required"}]

    def test_not_found_message(self) -> None:
        err = NotFoundError("Campaign", "c-1")
        assert err.message == "Campaign 'c-1' not found"
        assert err.identifier == "c-1"

    def test_event_validation_error_is_validation_error(self) -> None:
        err = EventValidationError("campaign.created", "1.0.0")
        assert isinstance(err, ValidationError)
        assert err.code == "event_validation_error"
        assert "campaign.created@1.0.0" in err.message

    def test_duplicate_event_is_conflict(self) -> None:
        err = DuplicateEventError("e-1")
        assert isinstance(err, ConflictError)
        assert err.event_id == "e-1"

    def test_slug_taken_is_conflict(self) -> None:
        err = SlugTakenError("my-slug")
        assert isinstance(err, ConflictError)
        assert err.slug == "my-slug"

    def test_saga_lookup_errors_are_not_found(self) -> None:
        assert isinstance(UnknownSagaTypeError("x"), NotFoundError)
        assert isinstance(SagaNotFoundError("s-1"), NotFoundError)

    def test_upcast_error_is_domain_error(self) -> None:
        assert isinstance(UpcastError("no path"), DomainError)


class TestInfrastructureAndApplicationErrors:
    def test_store_and_circuit_errors(self) -> None:
        assert isinstance(EventStoreError("down"), InfrastructureError)
        err = CircuitOpenError("handler:h")
        assert isinstance(err, InfrastructureError)
        assert err.to_dict()["circuit_name"] == "handler:h"

    def test_config_errors(self) -> None:
        assert issubclass(ConfigError, ApplicationError)
        missing = MissingRequiredSettingError("DB_URL")
        assert missing.setting_name == "DB_URL"
        invalid = InvalidSettingValueError("batch_size", 0, "must be >= 1")
        assert isinstance(invalid, ConfigError)
        assert "batch_size" in invalid.message
