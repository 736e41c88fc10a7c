"""Application — append-only event store."""
from fundly_events.application.event_store.filter import EventFilter
from fundly_events.application.event_store.store import EventStore, EventStoreError, InMemoryEventStore

__all__ = ["EventFilter", "EventStore", "EventStoreError", "InMemoryEventStore"]
