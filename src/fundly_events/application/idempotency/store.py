"""Application idempotency – processed-event records per handler."""
from __future__ import annotations

import abc
import dataclasses

from fundly_events.kernel.time import Clock, SystemClock


@dataclasses.dataclass(frozen=True)
class IdempotencyKey:
    """Composite idempotency key = (handler_name, event_id)."""

    handler_name: str
    event_id: str

    def __str__(self) -> str:
        return f"{self.handler_name}:{self.event_id}"


class ProcessedEventStore(abc.ABC):
    """Port: remember which events a handler has already processed."""

    @abc.abstractmethod
    async def is_processed(self, key: IdempotencyKey) -> bool: ...

    @abc.abstractmethod
    async def mark_processed(self, key: IdempotencyKey) -> None: ...


class InMemoryProcessedEventStore(ProcessedEventStore):
    """Short-lived in-memory records; each expires ``ttl_seconds`` after it is written."""

    def __init__(self, ttl_seconds: float = 3600.0, clock: Clock | None = None) -> None:
        self._ttl = ttl_seconds
        self._clock = clock or SystemClock()
        self._expires_at: dict[IdempotencyKey, float] = {}

    async def is_processed(self, key: IdempotencyKey) -> bool:
        expires_at = self._expires_at.get(key)
        if expires_at is None:
            return False
        if self._clock.monotonic() >= expires_at:
            del self._expires_at[key]
            return False
        return True

    async def mark_processed(self, key: IdempotencyKey) -> None:
        self._purge()
        self._expires_at[key] = self._clock.monotonic() + self._ttl

    def _purge(self) -> None:
        now = self._clock.monotonic()
        for key in [k for k, exp in self._expires_at.items() if exp <= now]:
            del self._expires_at[key]

    def __len__(self) -> int:
        return len(self._expires_at)


__all__ = ["IdempotencyKey", "InMemoryProcessedEventStore", "ProcessedEventStore"]
