"""Application projections – Projector abstract base class."""
from __future__ import annotations

import abc
from typing import ClassVar, Generic, Mapping, TypeVar

from fundly_events.application.event_bus import EventBus, Unsubscribe
from fundly_events.application.event_store import EventFilter, EventStore
from fundly_events.application.projections.store import ProjectionStore
from fundly_events.kernel.events import Event, EventUpcaster
from fundly_events.observability.logging import get_logger

R = TypeVar("R")
logger = get_logger(__name__)


class Projector(Generic[R], abc.ABC):
    """Maintains a read model from a stream of events.

    Subclasses declare ``handled_types``, map each event to the aggregate it
    updates with :meth:`key_for`, and fold events into rows with the pure
    :meth:`apply`.  Because rows are derived only from events, any aggregate
    can be rebuilt from the event store at any time.

    Events whose payload version differs from ``target_versions[type]`` are
    upcast first, so :meth:`apply` only ever sees one schema per type.

    Example::

        class FollowerCountProjector(Projector[int]):
            name = "follower_count"
            handled_types = frozenset({"user.campaign_followed"})

            def key_for(self, event):
                return event.payload["campaign_id"]

            def apply(self, row, event):
                return (row or 0) + 1
    """

    name: ClassVar[str]
    handled_types: ClassVar[frozenset[str]]
    target_versions: ClassVar[Mapping[str, str]] = {}

    def __init__(
        self,
        rows: ProjectionStore[R],
        events: EventStore,
        upcaster: EventUpcaster | None = None,
    ) -> None:
        self._rows = rows
        self._events = events
        self._upcaster = upcaster or EventUpcaster.default()

    @property
    def rows(self) -> ProjectionStore[R]:
        return self._rows

    @abc.abstractmethod
    def key_for(self, event: Event) -> str | None:
        """Aggregate id that *event* updates, or ``None`` to ignore it."""

    @abc.abstractmethod
    def apply(self, row: R | None, event: Event) -> R | None:
        """Return the new row after *event*; ``None`` leaves no row."""

    def handles(self, event: Event) -> bool:
        return event.event_type in self.handled_types

    async def project(self, event: Event) -> None:
        """Fold one event into its aggregate's row; unhandled types are ignored."""
        if not self.handles(event):
            return
        key = self.key_for(event)
        if key is None:
            return
        event = self._normalise(event)
        row = self.apply(await self._rows.get(key), event)
        if row is None:
            await self._rows.delete(key)
        else:
            await self._rows.put(key, row)

    async def rebuild(self, aggregate_id: str) -> R | None:
        """Recompute the row of *aggregate_id* from an empty state."""
        await self._rows.delete(aggregate_id)
        count = 0
        async for event in self._events.query(EventFilter(event_type=self.handled_types)):
            if self.key_for(event) == aggregate_id:
                await self.project(event)
                count += 1
        logger.info("projection.rebuilt", projector=self.name, aggregate_id=aggregate_id, events=count)
        return await self._rows.get(aggregate_id)

    async def rebuild_all(self) -> int:
        """Drop every row and replay all handled events; returns the event count."""
        await self._rows.clear()
        count = 0
        async for event in self._events.query(EventFilter(event_type=self.handled_types)):
            await self.project(event)
            count += 1
        logger.info("projection.rebuilt_all", projector=self.name, events=count)
        return count

    async def drop(self, aggregate_id: str) -> None:
        await self._rows.delete(aggregate_id)
        logger.info("projection.dropped", projector=self.name, aggregate_id=aggregate_id)

    def attach(self, bus: EventBus) -> Unsubscribe:
        """Subscribe to *bus* with a single handler so cross-type order is kept."""
        return bus.subscribe("*", self.project, name=f"projector:{self.name}")

    def _normalise(self, event: Event) -> Event:
        target = self.target_versions.get(event.event_type)
        if target is None or event.version == target:
            return event
        return self._upcaster.upcast(event, target)


__all__ = ["Projector"]
