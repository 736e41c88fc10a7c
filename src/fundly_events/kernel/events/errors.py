"""Kernel events – event-specific errors."""
from __future__ import annotations

from typing import Any

from fundly_events.kernel.errors import ConflictError, DomainError, ValidationError


class EventValidationError(ValidationError):
    """An event payload does not match the schema for its type and version."""

    default_code = "event_validation_error"

    def __init__(
        self,
        event_type: str,
        version: str,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message or f"Invalid payload for {event_type}@{version}", **kwargs
        )
        self.event_type = event_type
        self.version = version


class DuplicateEventError(ConflictError):
    """An event with the same id has already been appended to the store."""

    default_code = "duplicate_event"

    def __init__(self, event_id: str) -> None:
        super().__init__(f"Event '{event_id}' already stored")
        self.event_id = event_id


class UpcastError(DomainError):
    """No migration path exists between two payload versions."""

    default_code = "upcast_error"


__all__ = ["DuplicateEventError", "EventValidationError", "UpcastError"]
