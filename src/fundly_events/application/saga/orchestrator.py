"""Application saga – SagaDefinition and SagaOrchestrator."""
from __future__ import annotations

import asyncio
import contextlib
from typing import Any, Iterator, Mapping, Sequence
from uuid import uuid4

import structlog

from fundly_events.application.event_bus import EventBus
from fundly_events.application.saga.context import SagaContext
from fundly_events.application.saga.errors import SagaNotFoundError, UnknownSagaTypeError
from fundly_events.application.saga.state import (
    SagaInstance,
    SagaStatus,
    SagaStepRecord,
    StepStatus,
)
from fundly_events.application.saga.step import SagaStep, StepEvent
from fundly_events.application.saga.store import SagaStore
from fundly_events.kernel.events import EventFactory
from fundly_events.kernel.time import Clock, SystemClock
from fundly_events.observability.correlation import CorrelationContext, RequestContext
from fundly_events.observability.logging import get_logger
from fundly_events.observability.metrics import EventMetrics
from fundly_events.resilience.retry import RetryConfig

logger = get_logger(__name__)

CANCELLED = "cancelled"


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class SagaDefinition:
    """A named, ordered list of :class:`SagaStep` objects."""

    def __init__(self, saga_type: str, steps: Sequence[SagaStep]) -> None:
        if not steps:
            raise ValueError("SagaDefinition requires at least one step")
        names = [s.name for s in steps]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate step names in saga {saga_type!r}: {names}")
        self.saga_type = saga_type
        self.steps: tuple[SagaStep, ...] = tuple(steps)

    def __repr__(self) -> str:
        return f"SagaDefinition(saga_type={self.saga_type!r}, steps={[s.name for s in self.steps]})"


class SagaOrchestrator:
    """Runs registered sagas step by step, persisting every transition.

    Forward pass: each step is recorded ``pending``, executed (retried per
    *step_retry*), recorded ``completed`` and its event published with
    ``correlation_id`` = saga id and ``causation_id`` = the previous step's
    event id.  A failure while publishing counts as a failure of that
    (already completed) step.

    On failure, or when a cancel request is seen at a step boundary, the
    saga switches to ``compensating`` and undoes every completed step in
    reverse order (retried per *compensation_retry*).  A compensation that
    keeps failing is logged as ``saga.compensation_unresolved`` and the
    remaining compensations still run.  The saga ends ``failed`` with the
    original error message.

    Step and compensation errors never propagate to the caller; they end up
    in the persisted instance and step records.  Starts and final outcomes
    are reported to *metrics*.

    Example::

        orchestrator = SagaOrchestrator(store, bus, factory)
        orchestrator.register(SagaDefinition("campaign_creation", steps))
        saga_id = await orchestrator.start("campaign_creation", campaign_id, {...})
        instance = await orchestrator.get(saga_id)
    """

    def __init__(
        self,
        store: SagaStore,
        bus: EventBus,
        event_factory: EventFactory | None = None,
        *,
        step_retry: RetryConfig | None = None,
        compensation_retry: RetryConfig | None = None,
        clock: Clock | None = None,
        metrics: EventMetrics | None = None,
    ) -> None:
        self._store = store
        self._bus = bus
        self._clock = clock or SystemClock()
        self._metrics = metrics or EventMetrics(clock=self._clock)
        self._factory = event_factory or EventFactory(clock=self._clock, source="saga")
        self._step_policy = (step_retry or RetryConfig()).to_policy()
        self._compensation_policy = (compensation_retry or RetryConfig()).to_policy()
        self._definitions: dict[str, SagaDefinition] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._cancel_requested: set[str] = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def register(self, definition: SagaDefinition) -> None:
        if definition.saga_type in self._definitions:
            raise ValueError(f"Saga type {definition.saga_type!r} is already registered")
        self._definitions[definition.saga_type] = definition

    @property
    def metrics(self) -> EventMetrics:
        return self._metrics

    def definition(self, saga_type: str) -> SagaDefinition:
        try:
            return self._definitions[saga_type]
        except KeyError:
            raise UnknownSagaTypeError(saga_type) from None

    async def start(
        self,
        saga_type: str,
        aggregate_id: str,
        initial_context: Mapping[str, Any] | None = None,
        *,
        wait: bool = True,
    ) -> str:
        """Create an instance and run it.

        With ``wait=False`` the run is scheduled as a task and the id is
        returned immediately; use :meth:`wait` to join it.
        """
        definition = self.definition(saga_type)
        now = self._clock.now()
        instance = SagaInstance(
            id=str(uuid4()),
            saga_type=saga_type,
            aggregate_id=aggregate_id,
            status=SagaStatus.PENDING,
            created_at=now,
            updated_at=now,
            data=dict(initial_context or {}),
        )
        await self._store.save_instance(instance)
        self._metrics.record_saga_started(saga_type)
        logger.info(
            "saga.started",
            saga_id=instance.id,
            saga_type=saga_type,
            aggregate_id=aggregate_id,
        )
        if wait:
            await self._run(definition, instance)
        else:
            self._schedule(instance.id, self._run(definition, instance))
        return instance.id

    async def get(self, saga_id: str) -> SagaInstance:
        instance = await self._store.get_instance(saga_id)
        if instance is None:
            raise SagaNotFoundError(saga_id)
        return instance

    async def steps(self, saga_id: str) -> list[SagaStepRecord]:
        await self.get(saga_id)
        return await self._store.list_steps(saga_id)

    async def request_cancel(self, saga_id: str) -> bool:
        """Ask a running saga to stop at its next step boundary.

        Returns ``False`` when the saga has already finished.
        """
        instance = await self.get(saga_id)
        if instance.status.is_terminal:
            return False
        self._cancel_requested.add(saga_id)
        instance.cancel_requested = True
        instance.updated_at = self._clock.now()
        await self._store.save_instance(instance)
        logger.info("saga.cancel_requested", saga_id=saga_id)
        return True

    async def wait(self, saga_id: str) -> SagaInstance:
        """Wait for a scheduled run of *saga_id* and return its final state."""
        task = self._tasks.get(saga_id)
        if task is not None:
            await task
        return await self.get(saga_id)

    async def resume(self, saga_id: str, *, wait: bool = True) -> SagaInstance:
        """Continue an unfinished saga from its persisted state.

        A ``pending`` saga re-runs from the first step that is not
        ``completed``; a ``compensating`` saga finishes its compensation.
        Finished sagas are returned unchanged.
        """
        instance = await self.get(saga_id)
        if instance.status.is_terminal:
            return instance
        if saga_id in self._tasks:
            return await self.wait(saga_id) if wait else instance
        definition = self.definition(instance.saga_type)
        logger.info("saga.resumed", saga_id=saga_id, status=instance.status.value)
        if instance.status == SagaStatus.COMPENSATING:
            run = self._resume_compensation(definition, instance)
        else:
            run = self._run(definition, instance)
        if not wait:
            self._schedule(saga_id, run)
            return instance
        await run
        return await self.get(saga_id)

    # ------------------------------------------------------------------
    # Forward pass
    # ------------------------------------------------------------------

    async def _run(self, definition: SagaDefinition, instance: SagaInstance) -> None:
        with self._bound(instance):
            ctx = SagaContext(instance.id, instance.aggregate_id, instance.data)
            records = {r.step_number: r for r in await self._store.list_steps(instance.id)}
            previous_event_id = self._last_event_id(records.values())
            failure: str | None = None

            for number, step in enumerate(definition.steps, start=1):
                record = records.get(number)
                if record is not None and record.status == StepStatus.COMPLETED:
                    continue
                if await self._is_cancel_requested(instance.id):
                    logger.info("saga.cancelled", step_number=number)
                    failure = CANCELLED
                    break

                if record is None:
                    record = SagaStepRecord(
                        id=str(uuid4()),
                        saga_id=instance.id,
                        step_number=number,
                        step_name=step.name,
                    )
                record.status = StepStatus.PENDING
                record.error_message = None
                await self._store.save_step(record)

                try:
                    result = await self._step_policy.execute_async(
                        lambda s=step, r=record: self._attempt(s, r, ctx)
                    )
                except Exception as exc:
                    failure = _describe(exc)
                    record.status = StepStatus.FAILED
                    record.error_message = failure
                    await self._store.save_step(record)
                    logger.warning(
                        "saga.step_failed",
                        step=step.name,
                        step_number=number,
                        attempts=record.attempt_count,
                        error=failure,
                    )
                    break

                if result:
                    ctx.update(result)
                record.status = StepStatus.COMPLETED
                record.executed_at = self._clock.now()
                await self._store.save_step(record)
                await self._update(instance.id, current_step=number, data=ctx.snapshot())
                logger.info(
                    "saga.step_completed",
                    step=step.name,
                    step_number=number,
                    attempts=record.attempt_count,
                )

                try:
                    event_id = await self._publish(step.event(ctx), instance, step, previous_event_id)
                except Exception as exc:
                    failure = _describe(exc)
                    logger.warning(
                        "saga.step_publish_failed",
                        step=step.name,
                        step_number=number,
                        error=failure,
                    )
                    break
                if event_id is not None:
                    record.event_id = event_id
                    await self._store.save_step(record)
                    previous_event_id = event_id

            if failure is None:
                await self._update(
                    instance.id,
                    status=SagaStatus.COMPLETED,
                    completed_at=self._clock.now(),
                    data=ctx.snapshot(),
                )
                self._cancel_requested.discard(instance.id)
                self._metrics.record_saga_completed(instance.saga_type, len(definition.steps))
                logger.info("saga.completed")
                return

            await self._compensate(definition, instance, ctx, failure)

    async def _attempt(
        self,
        step: SagaStep,
        record: SagaStepRecord,
        ctx: SagaContext,
    ) -> Mapping[str, Any] | None:
        record.attempt_count += 1
        await self._store.save_step(record)
        return await step.execute(ctx)

    # ------------------------------------------------------------------
    # Compensation
    # ------------------------------------------------------------------

    async def _resume_compensation(self, definition: SagaDefinition, instance: SagaInstance) -> None:
        with self._bound(instance):
            ctx = SagaContext(instance.id, instance.aggregate_id, instance.data)
            await self._compensate(definition, instance, ctx, instance.error_message or CANCELLED)

    async def _compensate(
        self,
        definition: SagaDefinition,
        instance: SagaInstance,
        ctx: SagaContext,
        failure: str,
    ) -> None:
        await self._update(
            instance.id,
            status=SagaStatus.COMPENSATING,
            error_message=failure,
            data=ctx.snapshot(),
        )
        records = await self._store.list_steps(instance.id)
        causation_id = self._last_event_id(records)
        completed = [r for r in records if r.status == StepStatus.COMPLETED]
        logger.warning("saga.compensating", error=failure, steps=len(completed))
        unresolved = 0

        for record in reversed(completed):
            step = definition.steps[record.step_number - 1]
            try:
                await self._compensation_policy.execute_async(lambda s=step: s.compensate(ctx))
            except Exception as exc:
                record.error_message = f"compensation failed: {_describe(exc)}"
                unresolved += 1
                await self._store.save_step(record)
                logger.error(
                    "saga.compensation_unresolved",
                    step=step.name,
                    step_number=record.step_number,
                    error=_describe(exc),
                )
                continue

            record.status = StepStatus.COMPENSATED
            record.compensated_at = self._clock.now()
            await self._store.save_step(record)
            logger.info("saga.step_compensated", step=step.name, step_number=record.step_number)

            try:
                event_id = await self._publish(step.compensation_event(ctx), instance, step, causation_id)
            except Exception as exc:
                logger.error(
                    "saga.compensation_event_failed",
                    step=step.name,
                    step_number=record.step_number,
                    error=_describe(exc),
                )
            else:
                causation_id = event_id or causation_id

        await self._update(instance.id, status=SagaStatus.FAILED, error_message=failure)
        self._cancel_requested.discard(instance.id)
        self._metrics.record_saga_failed(instance.saga_type, len(completed), compensated=unresolved == 0)
        logger.warning("saga.failed", error=failure)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _publish(
        self,
        step_event: StepEvent | None,
        instance: SagaInstance,
        step: SagaStep,
        causation_id: str | None,
    ) -> str | None:
        if step_event is None:
            return None
        event = self._factory.create(
            step_event.event_type,
            step_event.payload,
            correlation_id=instance.id,
            causation_id=causation_id,
            metadata={"saga_id": instance.id, "saga_type": instance.saga_type, "step": step.name},
        )
        await self._bus.publish(event)
        return event.event_id

    async def _update(self, saga_id: str, **changes: Any) -> SagaInstance:
        instance = await self.get(saga_id)
        for key, value in changes.items():
            setattr(instance, key, value)
        instance.cancel_requested = instance.cancel_requested or saga_id in self._cancel_requested
        instance.updated_at = self._clock.now()
        await self._store.save_instance(instance)
        return instance

    async def _is_cancel_requested(self, saga_id: str) -> bool:
        if saga_id in self._cancel_requested:
            return True
        return (await self.get(saga_id)).cancel_requested

    @staticmethod
    def _last_event_id(records: Any) -> str | None:
        event_ids = [
            r.event_id for r in sorted(records, key=lambda r: r.step_number)
            if r.event_id is not None
        ]
        return event_ids[-1] if event_ids else None

    def _schedule(self, saga_id: str, run: Any) -> None:
        task = asyncio.get_running_loop().create_task(run, name=f"saga:{saga_id}")
        self._tasks[saga_id] = task

        def _forget(done: asyncio.Task[None]) -> None:
            if self._tasks.get(saga_id) is done:
                del self._tasks[saga_id]

        task.add_done_callback(_forget)

    @contextlib.contextmanager
    def _bound(self, instance: SagaInstance) -> Iterator[None]:
        with structlog.contextvars.bound_contextvars(
            saga_id=instance.id, saga_type=instance.saga_type
        ), CorrelationContext.scope(RequestContext(correlation_id=instance.id)):
            yield


__all__ = ["CANCELLED", "SagaDefinition", "SagaOrchestrator"]
