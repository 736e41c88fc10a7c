"""Application pipeline – EventMiddleware base and the Delivery request."""
from __future__ import annotations

import dataclasses
from typing import Awaitable, Callable, Sequence

from fundly_events.kernel.events import Event


@dataclasses.dataclass(frozen=True)
class Delivery:
    """One event on its way to one named handler."""

    event: Event
    handler_name: str
    replay: bool = False


PublishNext = Callable[[Sequence[Event]], Awaitable[None]]
HandleNext = Callable[[Delivery], Awaitable[None]]


class EventMiddleware:
    """Single node in the middleware chain.

    Override :meth:`on_publish` to wrap the publish path (before events are
    stored) and/or :meth:`on_handle` to wrap each handler delivery.  The
    defaults pass straight through.
    """

    async def on_publish(self, events: Sequence[Event], next_: PublishNext) -> None:
        await next_(events)

    async def on_handle(self, delivery: Delivery, next_: HandleNext) -> None:
        await next_(delivery)


__all__ = ["Delivery", "EventMiddleware", "HandleNext", "PublishNext"]
