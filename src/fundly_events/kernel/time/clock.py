"""Kernel time – Clock protocol + implementations."""
from __future__ import annotations

import time
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    """Port: abstract clock for deterministic testing."""

    def now(self) -> datetime: ...
    def epoch_ms(self) -> int: ...
    def monotonic(self) -> float: ...


class SystemClock:
    """Production clock backed by the system wall clock."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    def epoch_ms(self) -> int:
        return time.time_ns() // 1_000_000

    def monotonic(self) -> float:
        return time.monotonic()


class FrozenClock:
    """Test clock pinned to a fixed point in time.

    ``monotonic()`` moves together with :meth:`advance`, so circuit-breaker
    windows and idempotency TTLs can be exercised without sleeping.
    """

    def __init__(self, fixed: datetime) -> None:
        self._fixed = fixed
        self._mono = 0.0

    def now(self) -> datetime:
        return self._fixed

    def epoch_ms(self) -> int:
        return int(self._fixed.timestamp() * 1000)

    def monotonic(self) -> float:
        return self._mono

    def advance(self, **kwargs: int | float) -> None:
        """Advance the frozen time by the given ``timedelta`` kwargs."""
        delta = timedelta(**kwargs)
        self._fixed += delta
        self._mono += delta.total_seconds()


def utc_now() -> datetime:
    """Shorthand for ``datetime.now(UTC)``."""
    return datetime.now(UTC)


__all__ = ["Clock", "FrozenClock", "SystemClock", "utc_now"]
