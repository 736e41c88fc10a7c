"""Application – idempotent event processing."""
from fundly_events.application.idempotency.store import (
    IdempotencyKey,
    InMemoryProcessedEventStore,
    ProcessedEventStore,
)

__all__ = ["IdempotencyKey", "InMemoryProcessedEventStore", "ProcessedEventStore"]
