"""Resilience – RetryConfig and RetryPolicy."""
from __future__ import annotations

import asyncio
import dataclasses
import random
from typing import Awaitable, Callable, TypeVar

from fundly_events.observability.logging import get_logger

T = TypeVar("T")
logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True)
class RetryConfig:
    """Attempt budget and exponential backoff for one kind of work.

    The wait after the n-th failed attempt is
    ``base_delay * backoff_multiplier ** (n - 1)``, capped at ``max_delay``.
    With ``jitter`` the wait is drawn uniformly from ``[0, delay]``.
    """

    max_attempts: int = 3
    base_delay: float = 0.1
    max_delay: float = 5.0
    backoff_multiplier: float = 2.0
    jitter: bool = False

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")

    def delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number *attempt* (1-based)."""
        delay = min(self.base_delay * self.backoff_multiplier ** max(attempt - 1, 0), self.max_delay)
        return random.uniform(0, delay) if self.jitter else delay

    def to_policy(self) -> "RetryPolicy":
        return RetryPolicy(self)


class RetryPolicy:
    """Runs an async callable until it succeeds or the attempts run out.

    Exceptions whose class sets ``retryable = False`` (every
    :class:`~fundly_events.kernel.errors.DomainError`) fail immediately, as
    does anything outside *retry_on*.  The last exception propagates.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        *,
        retry_on: tuple[type[Exception], ...] = (Exception,),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config or RetryConfig()
        self.retry_on = retry_on
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self.config.max_attempts

    def should_retry(self, exc: Exception) -> bool:
        return isinstance(exc, self.retry_on) and getattr(exc, "retryable", True)

    async def execute_async(self, func: Callable[[], Awaitable[T]]) -> T:
        attempt = 1
        while True:
            try:
                return await func()
            except Exception as exc:
                if attempt >= self.max_attempts or not self.should_retry(exc):
                    raise
                delay = self.config.delay(attempt)
                logger.debug("retry.scheduled", attempt=attempt, delay=round(delay, 3), error=repr(exc))
                await self._sleep(delay)
                attempt += 1


__all__ = ["RetryConfig", "RetryPolicy"]
