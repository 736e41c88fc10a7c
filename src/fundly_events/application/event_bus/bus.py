"""Application event bus – in-process publish/subscribe with per-handler queues."""
from __future__ import annotations

import asyncio
import dataclasses
from typing import Awaitable, Callable, Iterable, Sequence

from fundly_events.application.dead_letter import DeadLetterQueue
from fundly_events.application.event_store import EventFilter, EventStore
from fundly_events.application.pipeline import Delivery, Pipeline
from fundly_events.kernel.errors import NotFoundError
from fundly_events.kernel.events import Event, EventDomain, EventType, event_type_value
from fundly_events.observability.logging import get_logger
from fundly_events.resilience.circuit_breaker import CircuitOpenError
from fundly_events.resilience.retry import RetryConfig, RetryPolicy

logger = get_logger(__name__)

EventHandler = Callable[[Event], Awaitable[None]]
Unsubscribe = Callable[[], None]

_ANY = "*"


def _check_pattern(pattern: str) -> str:
    if pattern == _ANY:
        return pattern
    if pattern.endswith(".*"):
        domain = pattern[:-2]
        if domain not in {d.value for d in EventDomain}:
            raise ValueError(f"Unknown event domain in pattern {pattern!r}")
        return pattern
    return event_type_value(pattern)


@dataclasses.dataclass
class _Job:
    delivery: Delivery
    done: asyncio.Future[None]


class _Subscription:
    def __init__(self, pattern: str, handler: EventHandler, name: str) -> None:
        self.pattern = pattern
        self.handler = handler
        self.name = name
        self.active = True
        self.queue: asyncio.Queue[_Job | None] = asyncio.Queue()
        self.worker: asyncio.Task[None] | None = None

    def matches(self, event_type: str) -> bool:
        if self.pattern == _ANY:
            return True
        if self.pattern.endswith(".*"):
            return event_type.startswith(self.pattern[:-1])
        return self.pattern == event_type


class EventBus:
    """Routes stored events to subscribed handlers.

    * ``publish`` appends to the :class:`EventStore` first; if the append
      fails nothing is delivered and the error reaches the caller.
    * Every subscription owns a queue and a worker task, so a handler sees
      events in publish order while different handlers run concurrently.
    * Handler errors never reach the publisher.  They are logged and, when a
      :class:`DeadLetterQueue` is configured, recorded there.

    Example::

        bus = EventBus(store, pipeline=Pipeline([LoggingMiddleware()]))
        bus.subscribe("donation.*", on_donation, name="donation-stats")
        await bus.publish(event)
        await bus.drain()
    """

    def __init__(
        self,
        store: EventStore,
        *,
        pipeline: Pipeline | None = None,
        dead_letters: DeadLetterQueue | None = None,
        handler_retry: RetryConfig | None = None,
        batch_size: int = 10,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._store = store
        self._pipeline = pipeline or Pipeline()
        self._dead_letters = dead_letters
        self._retry: RetryPolicy = (handler_retry or RetryConfig(max_attempts=1)).to_policy()
        self._batch_size = batch_size
        self._subscriptions: dict[str, _Subscription] = {}
        self._closed = False
        if dead_letters is not None:
            dead_letters.attach(self.redeliver)

    @property
    def store(self) -> EventStore:
        return self._store

    @property
    def pipeline(self) -> Pipeline:
        return self._pipeline

    @property
    def dead_letters(self) -> DeadLetterQueue | None:
        return self._dead_letters

    def subscriptions(self) -> dict[str, str]:
        """Map of handler name to the pattern it is subscribed to."""
        return {name: sub.pattern for name, sub in self._subscriptions.items()}

    # ------------------------------------------------------------------
    # Subscribing
    # ------------------------------------------------------------------

    def subscribe(
        self,
        event_type: EventType | str,
        handler: EventHandler,
        *,
        name: str | None = None,
    ) -> Unsubscribe:
        """Subscribe *handler* to an exact type, a ``"domain.*"`` wildcard or ``"*"``.

        *name* identifies the handler for idempotency, circuit breaking and
        dead-lettering; it defaults to the handler's qualified name and must
        be unique on this bus.
        """
        pattern = _check_pattern(event_type_value(event_type))
        handler_name = name or getattr(handler, "__qualname__", None) or repr(handler)
        if handler_name in self._subscriptions:
            raise ValueError(f"Handler name {handler_name!r} is already subscribed")
        sub = _Subscription(pattern, handler, handler_name)
        self._subscriptions[handler_name] = sub
        logger.debug("event_bus.subscribed", handler=handler_name, pattern=pattern)

        def unsubscribe() -> None:
            if not sub.active:
                return
            sub.active = False
            if self._subscriptions.get(handler_name) is sub:
                del self._subscriptions[handler_name]
            # queued deliveries finish first, then the worker exits
            sub.queue.put_nowait(None)
            logger.debug("event_bus.unsubscribed", handler=handler_name)

        return unsubscribe

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    async def publish(self, event: Event) -> None:
        """Store *event* and schedule its deliveries without waiting for them."""
        await self._publish([event])

    async def publish_batch(self, events: Sequence[Event]) -> None:
        """Store *events* in chunks of ``batch_size`` and wait for all deliveries.

        The publish middleware sees the whole batch once, so a batch rejected
        by validation stores nothing.
        """
        await self._wait(await self._publish(events))

    async def replay(self, filter: EventFilter | None = None) -> int:  # noqa: A002
        """Re-deliver stored events matching *filter*; returns how many were replayed."""
        self._ensure_open()
        pending: list[asyncio.Future[None]] = []
        count = 0
        async for event in self._store.query(filter):
            pending.extend(self._dispatch([event], replay=True))
            count += 1
        logger.info("event_bus.replay_started", events=count, deliveries=len(pending))
        await self._wait(pending)
        return count

    async def redeliver(self, event: Event, handler_name: str) -> None:
        """Run *event* through the named handler once more; errors propagate."""
        sub = self._subscriptions.get(handler_name)
        if sub is None:
            raise NotFoundError("Subscription", handler_name)
        await self._pipeline.handle(Delivery(event, handler_name, replay=True), self._invoke)

    async def drain(self) -> None:
        """Wait until every queued delivery has been handled."""
        await asyncio.gather(*(sub.queue.join() for sub in list(self._subscriptions.values())))

    async def close(self) -> None:
        """Stop all workers.  Undelivered events stay in the store for replay."""
        self._closed = True
        subs = list(self._subscriptions.values())
        workers = [sub.worker for sub in subs if sub.worker is not None and not sub.worker.done()]
        for worker in workers:
            worker.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        for sub in subs:
            while not sub.queue.empty():
                job = sub.queue.get_nowait()
                if job is not None:
                    job.done.cancel()
                sub.queue.task_done()
        logger.info("event_bus.closed", workers=len(workers))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("EventBus is closed")

    async def _publish(self, events: Sequence[Event]) -> list[asyncio.Future[None]]:
        self._ensure_open()
        scheduled: list[asyncio.Future[None]] = []

        async def _store_and_dispatch(batch: Sequence[Event]) -> None:
            for start in range(0, len(batch), self._batch_size):
                chunk = batch[start:start + self._batch_size]
                if len(chunk) == 1:
                    await self._store.append(chunk[0])
                else:
                    await self._store.append_batch(chunk)
                scheduled.extend(self._dispatch(chunk))

        await self._pipeline.publish(events, _store_and_dispatch)
        return scheduled

    def _dispatch(self, events: Iterable[Event], *, replay: bool = False) -> list[asyncio.Future[None]]:
        loop = asyncio.get_running_loop()
        futures: list[asyncio.Future[None]] = []
        for event in events:
            for sub in list(self._subscriptions.values()):
                if not sub.active or not sub.matches(event.event_type):
                    continue
                job = _Job(Delivery(event, sub.name, replay=replay), loop.create_future())
                sub.queue.put_nowait(job)
                futures.append(job.done)
                if sub.worker is None or sub.worker.done():
                    sub.worker = loop.create_task(self._run(sub), name=f"event-bus:{sub.name}")
        return futures

    async def _wait(self, futures: list[asyncio.Future[None]]) -> None:
        if futures:
            await asyncio.gather(*futures)

    async def _run(self, sub: _Subscription) -> None:
        while True:
            job = await sub.queue.get()
            try:
                if job is None:
                    return
                try:
                    await self._deliver(job.delivery)
                except asyncio.CancelledError:
                    job.done.cancel()
                    raise
                if not job.done.done():
                    job.done.set_result(None)
            finally:
                sub.queue.task_done()

    async def _deliver(self, delivery: Delivery) -> None:
        try:
            await self._pipeline.handle(delivery, self._invoke)
        except CircuitOpenError as exc:
            logger.warning(
                "event_bus.delivery_skipped",
                event_id=delivery.event.event_id,
                handler=delivery.handler_name,
                reason="circuit_open",
            )
            self._dead_letter(delivery, exc.message)
        except Exception as exc:
            logger.error(
                "event_bus.handler_failed",
                event_id=delivery.event.event_id,
                event_type=delivery.event.event_type,
                handler=delivery.handler_name,
                error=repr(exc),
            )
            self._dead_letter(delivery, repr(exc))

    async def _invoke(self, delivery: Delivery) -> None:
        sub = self._subscriptions.get(delivery.handler_name)
        if sub is None:
            raise NotFoundError("Subscription", delivery.handler_name)
        await self._retry.execute_async(lambda: sub.handler(delivery.event))

    def _dead_letter(self, delivery: Delivery, reason: str) -> None:
        if self._dead_letters is not None:
            self._dead_letters.record(delivery.event, delivery.handler_name, reason)


__all__ = ["EventBus", "EventHandler", "Unsubscribe"]
