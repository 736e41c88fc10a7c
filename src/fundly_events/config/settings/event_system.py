"""Config settings – EventSystemSettings."""
from __future__ import annotations

import dataclasses
import logging
from typing import ClassVar

from fundly_events.config.settings.base import Settings
from fundly_events.config.validation import InvalidSettingValueError
from fundly_events.resilience.circuit_breaker import CircuitBreakerPolicy
from fundly_events.resilience.retry import RetryConfig


@dataclasses.dataclass
class EventSystemSettings(Settings):
    """Tunables for the event bus, middleware and saga orchestrator.

    Every field can be set through ``FUNDLY_EVENTS_<FIELD>`` environment
    variables (see :class:`~fundly_events.config.settings.EnvSettingsLoader`).
    """

    _prefix: ClassVar[str] = "FUNDLY_EVENTS"

    batch_size: int = 10
    idempotency_ttl_seconds: float = 3600.0

    breaker_failure_threshold: int = 5
    breaker_window_seconds: float = 60.0
    breaker_cooldown_seconds: float = 30.0

    handler_max_attempts: int = 1
    handler_base_delay: float = 0.05
    handler_max_delay: float = 1.0
    handler_backoff_multiplier: float = 2.0

    step_max_attempts: int = 3
    step_base_delay: float = 0.1
    step_max_delay: float = 5.0
    step_backoff_multiplier: float = 2.0

    compensation_max_attempts: int = 3
    compensation_base_delay: float = 0.1
    compensation_max_delay: float = 5.0

    database_url: str | None = None
    log_level: str = "INFO"
    log_json: bool = True

    def _validate(self) -> None:
        positive_ints = (
            "batch_size",
            "breaker_failure_threshold",
            "handler_max_attempts",
            "step_max_attempts",
            "compensation_max_attempts",
        )
        for name in positive_ints:
            value = getattr(self, name)
            if value < 1:
                raise InvalidSettingValueError(name, value, "must be >= 1")
        for name in ("idempotency_ttl_seconds", "breaker_window_seconds", "breaker_cooldown_seconds"):
            value = getattr(self, name)
            if value < 0:
                raise InvalidSettingValueError(name, value, "must be >= 0")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise InvalidSettingValueError("log_level", self.log_level, "unknown log level")

    def breaker_policy(self) -> CircuitBreakerPolicy:
        return CircuitBreakerPolicy(
            failure_threshold=self.breaker_failure_threshold,
            window_seconds=self.breaker_window_seconds,
            cooldown_seconds=self.breaker_cooldown_seconds,
        )

    def handler_retry(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.handler_max_attempts,
            base_delay=self.handler_base_delay,
            max_delay=self.handler_max_delay,
            backoff_multiplier=self.handler_backoff_multiplier,
        )

    def step_retry(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.step_max_attempts,
            base_delay=self.step_base_delay,
            max_delay=self.step_max_delay,
            backoff_multiplier=self.step_backoff_multiplier,
        )

    def compensation_retry(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.compensation_max_attempts,
            base_delay=self.compensation_base_delay,
            max_delay=self.compensation_max_delay,
        )


__all__ = ["EventSystemSettings"]
