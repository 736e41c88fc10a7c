"""Application event store – EventFilter."""

from __future__ import annotations

import dataclasses
from typing import Iterable

from fundly_events.kernel.events import Event, EventType, event_type_value


@dataclasses.dataclass(frozen=True)
class EventFilter:
    """Criteria for :meth:`EventStore.query`; every field is optional.

    ``event_type`` accepts one type or a collection of types.  ``from_ts``
    and ``to_ts`` are inclusive epoch-millisecond bounds.
    """

    event_type: EventType | str | Iterable[EventType | str] | None = None
    from_ts: int | None = None
    to_ts: int | None = None
    correlation_id: str | None = None

    @property
    def event_types(self) -> frozenset[str] | None:
        if self.event_type is None:
            return None
        if isinstance(self.event_type, (str, EventType)):
            return frozenset({event_type_value(self.event_type)})
        return frozenset(event_type_value(t) for t in self.event_type)

    def matches(self, event: Event) -> bool:
        types = self.event_types
        if types is not None and event.event_type not in types:
            return False
        if self.from_ts is not None and event.timestamp < self.from_ts:
            return False
        if self.to_ts is not None and event.timestamp > self.to_ts:
            return False
        if self.correlation_id is not None and event.correlation_id != self.correlation_id:
            return False
        return True


__all__ = ["EventFilter"]
