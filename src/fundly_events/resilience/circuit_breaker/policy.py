"""Resilience – circuit breaker states and policy."""
from __future__ import annotations

import dataclasses
from enum import Enum


class CircuitBreakerState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


@dataclasses.dataclass(frozen=True)
class CircuitBreakerPolicy:
    """When a breaker opens and how long it stays open.

    ``failure_threshold`` consecutive failures inside ``window_seconds``
    open the breaker; after ``cooldown_seconds`` one trial call is let
    through.
    """

    failure_threshold: int = 5
    window_seconds: float = 60.0
    cooldown_seconds: float = 30.0

    def __post_init__(self) -> None:
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        if self.window_seconds < 0 or self.cooldown_seconds < 0:
            raise ValueError("window_seconds and cooldown_seconds must be >= 0")


__all__ = ["CircuitBreakerPolicy", "CircuitBreakerState"]
