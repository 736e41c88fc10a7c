"""Kernel – domain event model, catalog and versioning."""
from fundly_events.kernel.events.errors import DuplicateEventError, EventValidationError, UpcastError
from fundly_events.kernel.events.event import DEFAULT_VERSION, Event, EventFactory
from fundly_events.kernel.events.registry import SchemaRegistry
from fundly_events.kernel.events.types import EventDomain, EventType, event_type_value
from fundly_events.kernel.events.versioning import EventUpcaster

__all__ = [
    "DEFAULT_VERSION",
    "DuplicateEventError",
    "Event",
    "EventDomain",
    "EventFactory",
    "EventType",
    "EventUpcaster",
    "EventValidationError",
    "SchemaRegistry",
    "UpcastError",
    "event_type_value",
]
