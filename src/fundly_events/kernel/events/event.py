"""Kernel events – the immutable Event record and EventFactory."""

from __future__ import annotations

import dataclasses
import threading
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping
from uuid import uuid4

from fundly_events.kernel.events.types import EventType, event_type_value
from fundly_events.kernel.time import Clock, SystemClock
from fundly_events.observability.correlation import CorrelationContext

if TYPE_CHECKING:
    from fundly_events.kernel.events.registry import SchemaRegistry

DEFAULT_VERSION = "1.0.0"


@dataclasses.dataclass(frozen=True)
class Event:
    """An immutable record of something that happened in the domain.

    ``payload`` and ``metadata`` are exposed as read-only mappings.  Once an
    event exists it is never modified; corrections are new events.

    Example::

        event = Event(
            event_type=EventType.CAMPAIGN_CREATED,
            payload={"campaign_id": "c-1", "user_id": "u-1", ...},
        )
    """

    event_type: str
    payload: Mapping[str, Any]
    event_id: str = dataclasses.field(default_factory=lambda: str(uuid4()))
    timestamp: int = dataclasses.field(default_factory=lambda: SystemClock().epoch_ms())
    """Creation instant in epoch milliseconds."""
    version: str = DEFAULT_VERSION
    """Semantic version of the payload schema."""
    correlation_id: str | None = None
    causation_id: str | None = None
    metadata: Mapping[str, Any] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_type", event_type_value(self.event_type))
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def __hash__(self) -> int:
        return hash(self.event_id)

    @property
    def domain(self) -> str:
        return self.event_type.split(".", 1)[0]

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict representation (JSON-friendly when the payload is)."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "timestamp": self.timestamp,
            "version": self.version,
            "correlation_id": self.correlation_id,
            "causation_id": self.causation_id,
            "metadata": dict(self.metadata),
            "payload": dict(self.payload),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Event":
        return cls(
            event_id=data["event_id"],
            event_type=data["event_type"],
            timestamp=int(data["timestamp"]),
            version=data.get("version") or DEFAULT_VERSION,
            correlation_id=data.get("correlation_id"),
            causation_id=data.get("causation_id"),
            metadata=data.get("metadata") or {},
            payload=data.get("payload") or {},
        )

    def evolve(self, **changes: Any) -> "Event":
        """Return a copy with *changes* applied (used by upcasting)."""
        return dataclasses.replace(self, **changes)


class EventFactory:
    """Builds events for one publisher.

    Timestamps handed out by a factory never go backwards, even if the
    wall clock does.  When *registry* is given, payloads are validated and
    normalised (defaults filled in) at creation time.  Without an explicit
    ``correlation_id`` the ambient :class:`CorrelationContext` is used.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        registry: "SchemaRegistry | None" = None,
        source: str | None = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._registry = registry
        self._source = source
        self._last_ts = 0
        self._lock = threading.Lock()

    def _next_timestamp(self) -> int:
        with self._lock:
            ts = max(self._clock.epoch_ms(), self._last_ts)
            self._last_ts = ts
            return ts

    def create(
        self,
        event_type: EventType | str,
        payload: Mapping[str, Any],
        *,
        version: str = DEFAULT_VERSION,
        correlation_id: str | None = None,
        causation_id: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Event:
        type_value = event_type_value(event_type)
        data = dict(payload)
        if self._registry is not None:
            data = self._registry.validate_payload(type_value, data, version)

        meta = dict(metadata or {})
        if self._source is not None:
            meta.setdefault("source", self._source)

        if correlation_id is None:
            ctx = CorrelationContext.get()
            if ctx is not None:
                correlation_id = ctx.correlation_id
                if causation_id is None:
                    causation_id = ctx.causation_id

        return Event(
            event_type=type_value,
            payload=data,
            timestamp=self._next_timestamp(),
            version=version,
            correlation_id=correlation_id,
            causation_id=causation_id,
            metadata=meta,
        )


__all__ = ["DEFAULT_VERSION", "Event", "EventFactory"]
