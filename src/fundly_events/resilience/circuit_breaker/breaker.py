"""Resilience – CircuitBreaker implementation."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from fundly_events.kernel.time import Clock, SystemClock
from fundly_events.observability.logging import get_logger
from fundly_events.resilience.circuit_breaker.errors import CircuitOpenError
from fundly_events.resilience.circuit_breaker.policy import CircuitBreakerPolicy, CircuitBreakerState

T = TypeVar("T")
logger = get_logger(__name__)


class CircuitBreaker:
    """asyncio-safe circuit breaker.

    CLOSED counts consecutive failures; a failure that arrives more than
    ``window_seconds`` after the first one in the current run starts a new
    run.  OPEN rejects every call with :class:`CircuitOpenError` until the
    cool-down has elapsed.  HALF_OPEN admits exactly one trial call: success
    closes the breaker, failure re-opens it.
    """

    def __init__(
        self,
        name: str,
        policy: CircuitBreakerPolicy | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.name = name
        self._policy = policy or CircuitBreakerPolicy()
        self._clock = clock or SystemClock()
        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._first_failure_at: float | None = None
        self._opened_at: float | None = None
        self._trial_in_flight = False
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitBreakerState:
        self._maybe_transition_half_open()
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    async def call(self, func: Callable[[], Awaitable[T]]) -> T:
        async with self._lock:
            self._before_call()

        try:
            result = await func()
        except Exception:
            async with self._lock:
                self._on_failure()
            raise
        except BaseException:
            # cancelled: neither outcome, but the trial slot is free again
            self._trial_in_flight = False
            raise
        async with self._lock:
            self._on_success()
        return result

    def _before_call(self) -> None:
        self._maybe_transition_half_open()
        if self._state == CircuitBreakerState.OPEN:
            raise CircuitOpenError(self.name)
        if self._state == CircuitBreakerState.HALF_OPEN:
            if self._trial_in_flight:
                raise CircuitOpenError(self.name, f"Circuit breaker '{self.name}' trial in flight")
            self._trial_in_flight = True

    def _maybe_transition_half_open(self) -> None:
        if (
            self._state == CircuitBreakerState.OPEN
            and self._opened_at is not None
            and self._clock.monotonic() - self._opened_at >= self._policy.cooldown_seconds
        ):
            logger.info("circuit_breaker.half_open", name=self.name)
            self._state = CircuitBreakerState.HALF_OPEN
            self._trial_in_flight = False

    def _on_success(self) -> None:
        if self._state == CircuitBreakerState.HALF_OPEN:
            logger.info("circuit_breaker.closed", name=self.name)
        self._state = CircuitBreakerState.CLOSED
        self._trial_in_flight = False
        self._failure_count = 0
        self._first_failure_at = None

    def _on_failure(self) -> None:
        now = self._clock.monotonic()
        if self._state == CircuitBreakerState.HALF_OPEN:
            self._open(now)
            return

        if self._first_failure_at is None or now - self._first_failure_at > self._policy.window_seconds:
            self._first_failure_at = now
            self._failure_count = 0
        self._failure_count += 1
        logger.warning(
            "circuit_breaker.failure",
            name=self.name,
            count=self._failure_count,
            threshold=self._policy.failure_threshold,
        )
        if self._failure_count >= self._policy.failure_threshold:
            self._open(now)

    def _open(self, now: float) -> None:
        logger.error("circuit_breaker.opened", name=self.name)
        self._state = CircuitBreakerState.OPEN
        self._opened_at = now
        self._trial_in_flight = False
        self._failure_count = 0
        self._first_failure_at = None


__all__ = ["CircuitBreaker"]
