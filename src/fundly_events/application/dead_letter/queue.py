"""Application dead-letter – DeadLetterQueue for failed or skipped deliveries."""
from __future__ import annotations

import dataclasses
from datetime import datetime
from typing import Awaitable, Protocol
from uuid import uuid4

from fundly_events.kernel.errors import NotFoundError
from fundly_events.kernel.events import Event
from fundly_events.kernel.time import Clock, SystemClock
from fundly_events.observability.logging import get_logger

logger = get_logger(__name__)


class Redeliver(Protocol):
    """Callable that re-runs one event through one named handler; raises on failure."""

    def __call__(self, event: Event, handler_name: str) -> Awaitable[None]: ...


@dataclasses.dataclass
class DeadLetterEntry:
    event: Event
    handler_name: str
    reason: str
    first_failed_at: datetime
    last_failed_at: datetime
    failure_count: int = 1
    id: str = dataclasses.field(default_factory=lambda: str(uuid4()))


@dataclasses.dataclass(frozen=True)
class ReprocessResult:
    success: int = 0
    failed: int = 0
    errors: tuple[str, ...] = ()


@dataclasses.dataclass(frozen=True)
class DeadLetterStats:
    total: int
    by_handler: dict[str, int]
    total_failures: int


class DeadLetterQueue:
    """In-memory dead-letter queue.

    One entry exists per ``(event_id, handler_name)``; repeated failures of
    the same pair bump its ``failure_count``.  Reprocessing goes through the
    :class:`Redeliver` callable attached by the event bus.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._entries: dict[str, DeadLetterEntry] = {}
        self._redeliver: Redeliver | None = None

    def attach(self, redeliver: Redeliver) -> None:
        self._redeliver = redeliver

    def record(self, event: Event, handler_name: str, reason: str) -> DeadLetterEntry:
        now = self._clock.now()
        entry = self._find(event.event_id, handler_name)
        if entry is None:
            entry = DeadLetterEntry(
                event=event,
                handler_name=handler_name,
                reason=reason,
                first_failed_at=now,
                last_failed_at=now,
            )
            self._entries[entry.id] = entry
        else:
            entry.failure_count += 1
            entry.last_failed_at = now
            entry.reason = reason
        logger.warning(
            "dead_letter.recorded",
            entry_id=entry.id,
            event_id=event.event_id,
            handler=handler_name,
            failure_count=entry.failure_count,
            reason=reason,
        )
        return entry

    def entries(
        self,
        handler_name: str | None = None,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[DeadLetterEntry]:
        """Entries newest-first, optionally for one handler only."""
        items = [
            e for e in self._entries.values()
            if handler_name is None or e.handler_name == handler_name
        ]
        items.sort(key=lambda e: e.first_failed_at, reverse=True)
        end = None if limit is None else offset + limit
        return items[offset:end]

    def get(self, entry_id: str) -> DeadLetterEntry | None:
        return self._entries.get(entry_id)

    async def reprocess(self, entry_id: str) -> bool:
        """Re-deliver one entry; remove it on success, bump its count on failure."""
        entry = self._entries.get(entry_id)
        if entry is None:
            raise NotFoundError("DeadLetterEntry", entry_id)
        if self._redeliver is None:
            raise RuntimeError("DeadLetterQueue is not attached to an event bus")
        try:
            await self._redeliver(entry.event, entry.handler_name)
        except Exception as exc:
            entry.failure_count += 1
            entry.last_failed_at = self._clock.now()
            entry.reason = repr(exc)
            logger.warning(
                "dead_letter.reprocess_failed",
                entry_id=entry_id,
                event_id=entry.event.event_id,
                handler=entry.handler_name,
                error=repr(exc),
            )
            return False
        del self._entries[entry_id]
        logger.info(
            "dead_letter.reprocessed",
            entry_id=entry_id,
            event_id=entry.event.event_id,
            handler=entry.handler_name,
        )
        return True

    async def reprocess_all(self, handler_name: str | None = None) -> ReprocessResult:
        success = 0
        failed = 0
        errors: list[str] = []
        for entry in self.entries(handler_name):
            if await self.reprocess(entry.id):
                success += 1
            else:
                failed += 1
                errors.append(f"{entry.id}: {entry.reason}")
        return ReprocessResult(success=success, failed=failed, errors=tuple(errors))

    def delete(self, entry_id: str) -> bool:
        return self._entries.pop(entry_id, None) is not None

    def stats(self) -> DeadLetterStats:
        by_handler: dict[str, int] = {}
        total_failures = 0
        for entry in self._entries.values():
            by_handler[entry.handler_name] = by_handler.get(entry.handler_name, 0) + 1
            total_failures += entry.failure_count
        return DeadLetterStats(
            total=len(self._entries),
            by_handler=by_handler,
            total_failures=total_failures,
        )

    def _find(self, event_id: str, handler_name: str) -> DeadLetterEntry | None:
        for entry in self._entries.values():
            if entry.event.event_id == event_id and entry.handler_name == handler_name:
                return entry
        return None

    def __len__(self) -> int:
        return len(self._entries)


__all__ = [
    "DeadLetterEntry",
    "DeadLetterQueue",
    "DeadLetterStats",
    "Redeliver",
    "ReprocessResult",
]
