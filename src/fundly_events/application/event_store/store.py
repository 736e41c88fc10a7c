"""Application event store – EventStore port and InMemoryEventStore."""

from __future__ import annotations

import abc
import asyncio
from typing import AsyncIterator, Sequence

from fundly_events.application.event_store.filter import EventFilter
from fundly_events.kernel.errors import InfrastructureError
from fundly_events.kernel.events import DuplicateEventError, Event


class EventStoreError(InfrastructureError):
    """The store could not persist or read events."""

    default_code = "event_store_error"


class EventStore(abc.ABC):
    """Port — durable, append-only event log.

    Rows are never updated or deleted.  An event id can be appended only
    once (:class:`DuplicateEventError` otherwise), and a batch is appended
    all-or-nothing.
    """

    @abc.abstractmethod
    async def append(self, event: Event) -> None:
        """Durably append a single event."""

    @abc.abstractmethod
    async def append_batch(self, events: Sequence[Event]) -> None:
        """Durably append *events* atomically."""

    @abc.abstractmethod
    def query(self, filter: EventFilter | None = None) -> AsyncIterator[Event]:  # noqa: A002
        """Lazily yield matching events ordered by ``timestamp`` ascending.

        Events with equal timestamps come out in append order.  Each call
        starts a fresh iteration.
        """

    @abc.abstractmethod
    async def get(self, event_id: str) -> Event | None:
        """Return the event with *event_id*, or ``None``."""

    async def load_all(self, filter: EventFilter | None = None) -> list[Event]:  # noqa: A002
        """Materialise :meth:`query` into a list."""
        return [event async for event in self.query(filter)]


class InMemoryEventStore(EventStore):
    """In-memory :class:`EventStore` for tests and local development."""

    def __init__(self) -> None:
        self._events: list[Event] = []
        self._ids: set[str] = set()
        self._lock = asyncio.Lock()

    async def append(self, event: Event) -> None:
        await self.append_batch([event])

    async def append_batch(self, events: Sequence[Event]) -> None:
        async with self._lock:
            seen: set[str] = set()
            for event in events:
                if event.event_id in self._ids or event.event_id in seen:
                    raise DuplicateEventError(event.event_id)
                seen.add(event.event_id)
            self._events.extend(events)
            self._ids.update(seen)

    async def query(self, filter: EventFilter | None = None) -> AsyncIterator[Event]:  # noqa: A002
        criteria = filter or EventFilter()
        # sorted() is stable, so equal timestamps keep append order
        snapshot = sorted(self._events, key=lambda e: e.timestamp)
        for event in snapshot:
            if criteria.matches(event):
                yield event

    async def get(self, event_id: str) -> Event | None:
        for event in self._events:
            if event.event_id == event_id:
                return event
        return None

    def all_events(self) -> list[Event]:
        """Return every stored event in append order (useful in tests)."""
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)


__all__ = ["EventStore", "EventStoreError", "InMemoryEventStore"]
