"""Observability – event bus and saga metrics."""
from __future__ import annotations

import dataclasses
from collections import deque
from typing import Any, Literal

from fundly_events.kernel.time import Clock, SystemClock
from fundly_events.observability.logging import get_logger
from fundly_events.observability.metrics.noop import NoopMetrics
from fundly_events.observability.metrics.ports import Metrics

logger = get_logger(__name__)

Health = Literal["healthy", "degraded", "critical"]


@dataclasses.dataclass
class HandlerStats:
    processed: int = 0
    failed: int = 0
    skipped: int = 0
    consecutive_failures: int = 0
    last_processed_at: int | None = None
    average_ms: float = 0.0

    @property
    def attempts(self) -> int:
        return self.processed + self.failed

    @property
    def failure_rate(self) -> float:
        return self.failed / self.attempts if self.attempts else 0.0


@dataclasses.dataclass
class SagaStats:
    started: int = 0
    completed: int = 0
    failed: int = 0
    compensated: int = 0
    total_steps: int = 0

    @property
    def finished(self) -> int:
        return self.completed + self.failed

    @property
    def average_steps(self) -> float:
        return self.total_steps / self.finished if self.finished else 0.0

    @property
    def success_rate(self) -> float:
        """Completed share of finished sagas; 1.0 before any has finished."""
        return self.completed / self.finished if self.finished else 1.0


class EventMetrics:
    """Counts what flows through the bus and the saga orchestrator.

    A summary is kept in process (``snapshot()``, the health checks) and
    every observation is also forwarded to a :class:`Metrics` backend:

    * ``events.published`` counter, labelled by ``event_type``
    * ``events.handled`` counter, labelled by ``handler``, ``event_type``
      and ``outcome`` (``success``/``failure``/``skipped``)
    * ``events.handle_duration`` histogram in milliseconds
    * ``events.consecutive_failures`` gauge per handler
    * ``sagas`` counter labelled by ``saga_type`` and ``outcome``

    Processing averages cover the last *window* deliveries.  A handler is
    ``critical`` after *critical_failures* consecutive failures and
    ``degraded`` above *degraded_failure_rate*.
    """

    def __init__(
        self,
        metrics: Metrics | None = None,
        *,
        clock: Clock | None = None,
        window: int = 100,
        critical_failures: int = 5,
        degraded_failure_rate: float = 0.2,
    ) -> None:
        if window < 1:
            raise ValueError("window must be >= 1")
        self._clock = clock or SystemClock()
        self._window = window
        self._critical_failures = critical_failures
        self._degraded_failure_rate = degraded_failure_rate
        backend = metrics or NoopMetrics()
        self._published_counter = backend.counter("events.published", "Events stored by the bus")
        self._handled_counter = backend.counter("events.handled", "Handler deliveries by outcome")
        self._duration = backend.histogram("events.handle_duration", "Handler processing time")
        self._consecutive = backend.gauge("events.consecutive_failures", "Failures in a row per handler")
        self._saga_counter = backend.counter("sagas", "Saga runs by outcome")
        self.reset()

    def reset(self) -> None:
        self._published_by_type: dict[str, int] = {}
        self._handlers: dict[str, HandlerStats] = {}
        self._durations: deque[float] = deque(maxlen=self._window)
        self._handler_durations: dict[str, deque[float]] = {}
        self._sagas = SagaStats()

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_published(self, event_type: str) -> None:
        self._published_by_type[event_type] = self._published_by_type.get(event_type, 0) + 1
        self._published_counter.add(labels={"event_type": event_type})

    def record_handled(self, handler: str, event_type: str, duration_ms: float, *, success: bool) -> None:
        stats = self._handlers.setdefault(handler, HandlerStats())
        stats.last_processed_at = self._clock.epoch_ms()
        if success:
            stats.processed += 1
            stats.consecutive_failures = 0
        else:
            stats.failed += 1
            stats.consecutive_failures += 1
            if stats.consecutive_failures == self._critical_failures:
                logger.warning("event_metrics.handler_critical", handler=handler, failures=stats.consecutive_failures)

        self._durations.append(duration_ms)
        recent = self._handler_durations.setdefault(handler, deque(maxlen=self._window))
        recent.append(duration_ms)
        stats.average_ms = sum(recent) / len(recent)

        outcome = "success" if success else "failure"
        self._handled_counter.add(labels={"handler": handler, "event_type": event_type, "outcome": outcome})
        self._duration.record(duration_ms, labels={"handler": handler})
        self._consecutive.set(stats.consecutive_failures, labels={"handler": handler})

    def record_skipped(self, handler: str, event_type: str) -> None:
        """A delivery that never reached the handler (open circuit)."""
        self._handlers.setdefault(handler, HandlerStats()).skipped += 1
        self._handled_counter.add(labels={"handler": handler, "event_type": event_type, "outcome": "skipped"})

    def record_saga_started(self, saga_type: str) -> None:
        self._sagas.started += 1
        self._saga_counter.add(labels={"saga_type": saga_type, "outcome": "started"})

    def record_saga_completed(self, saga_type: str, steps: int) -> None:
        self._sagas.completed += 1
        self._sagas.total_steps += steps
        self._saga_counter.add(labels={"saga_type": saga_type, "outcome": "completed"})

    def record_saga_failed(self, saga_type: str, steps: int, *, compensated: bool) -> None:
        """*steps* is how many steps had completed; *compensated* means all were undone."""
        self._sagas.failed += 1
        self._sagas.total_steps += steps
        self._saga_counter.add(labels={"saga_type": saga_type, "outcome": "failed"})
        if compensated:
            self._sagas.compensated += 1
            self._saga_counter.add(labels={"saga_type": saga_type, "outcome": "compensated"})

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    @property
    def total_published(self) -> int:
        return sum(self._published_by_type.values())

    @property
    def average_processing_ms(self) -> float:
        return sum(self._durations) / len(self._durations) if self._durations else 0.0

    def published_by_type(self) -> dict[str, int]:
        return dict(self._published_by_type)

    def handler(self, name: str) -> HandlerStats:
        return dataclasses.replace(self._handlers.get(name) or HandlerStats())

    def sagas(self) -> SagaStats:
        return dataclasses.replace(self._sagas)

    def handler_health(self, name: str) -> Health:
        stats = self._handlers.get(name)
        if stats is None:
            return "healthy"
        if stats.consecutive_failures >= self._critical_failures:
            return "critical"
        if stats.failure_rate > self._degraded_failure_rate:
            return "degraded"
        return "healthy"

    def saga_health(self) -> Health:
        rate = self._sagas.success_rate
        if rate < 0.7:
            return "critical"
        if rate < 0.9:
            return "degraded"
        return "healthy"

    def snapshot(self) -> dict[str, Any]:
        handlers = list(self._handlers.values())
        return {
            "total_published": self.total_published,
            "total_processed": sum(h.processed for h in handlers),
            "total_failed": sum(h.failed for h in handlers),
            "total_skipped": sum(h.skipped for h in handlers),
            "average_processing_ms": self.average_processing_ms,
            "events_by_type": self.published_by_type(),
            "handlers": {name: dataclasses.asdict(h) for name, h in self._handlers.items()},
            "sagas": {
                **dataclasses.asdict(self._sagas),
                "average_steps": self._sagas.average_steps,
                "success_rate": self._sagas.success_rate,
            },
        }


__all__ = ["EventMetrics", "HandlerStats", "Health", "SagaStats"]
