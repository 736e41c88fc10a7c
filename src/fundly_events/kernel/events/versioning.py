"""Kernel events – EventUpcaster: payload migrations between schema versions."""

from __future__ import annotations

import collections
import dataclasses
from typing import Any, Callable

from fundly_events.kernel.events.errors import UpcastError
from fundly_events.kernel.events.event import Event
from fundly_events.kernel.events.types import EventType, event_type_value

Migration = Callable[[dict[str, Any]], dict[str, Any]]


@dataclasses.dataclass(frozen=True)
class _Step:
    from_version: str
    to_version: str
    migrate: Migration


class EventUpcaster:
    """Registry of payload migrations, applied along the shortest path.

    Example::

        upcaster = EventUpcaster()
        upcaster.register(
            EventType.DONATION_COMPLETED, "1.0.0", "2.0.0",
            lambda p: {**p, "currency": p.get("currency", "USD")},
        )
        v2 = upcaster.upcast(v1_event, "2.0.0")
    """

    def __init__(self) -> None:
        self._steps: dict[str, list[_Step]] = {}

    @classmethod
    def default(cls) -> "EventUpcaster":
        upcaster = cls()
        upcaster.register(
            EventType.DONATION_COMPLETED,
            "1.0.0",
            "2.0.0",
            lambda payload: {**payload, "currency": payload.get("currency") or "USD"},
        )
        return upcaster

    def register(
        self,
        event_type: EventType | str,
        from_version: str,
        to_version: str,
        migrate: Migration,
    ) -> None:
        self._steps.setdefault(event_type_value(event_type), []).append(
            _Step(from_version, to_version, migrate)
        )

    def _path(self, event_type: str, source: str, target: str) -> list[_Step] | None:
        if source == target:
            return []
        steps = self._steps.get(event_type, [])
        queue: collections.deque[tuple[str, list[_Step]]] = collections.deque([(source, [])])
        visited = {source}
        while queue:
            version, path = queue.popleft()
            for step in steps:
                if step.from_version != version or step.to_version in visited:
                    continue
                new_path = [*path, step]
                if step.to_version == target:
                    return new_path
                visited.add(step.to_version)
                queue.append((step.to_version, new_path))
        return None

    def can_upcast(self, event_type: EventType | str, from_version: str, to_version: str) -> bool:
        return self._path(event_type_value(event_type), from_version, to_version) is not None

    def versions(self, event_type: EventType | str) -> list[str]:
        seen: set[str] = set()
        for step in self._steps.get(event_type_value(event_type), []):
            seen.update((step.from_version, step.to_version))
        return sorted(seen)

    def upcast(self, event: Event, target_version: str) -> Event:
        """Return *event* migrated to *target_version*.

        The original event is untouched; the returned copy keeps the same id
        and records ``original_version`` in its metadata.
        """
        if event.version == target_version:
            return event
        path = self._path(event.event_type, event.version, target_version)
        if path is None:
            raise UpcastError(
                f"No migration path from {event.version} to {target_version} "
                f"for {event.event_type}"
            )
        payload = dict(event.payload)
        for step in path:
            payload = step.migrate(payload)
        metadata = dict(event.metadata)
        metadata.setdefault("original_version", event.version)
        return event.evolve(version=target_version, payload=payload, metadata=metadata)


__all__ = ["EventUpcaster", "Migration"]
