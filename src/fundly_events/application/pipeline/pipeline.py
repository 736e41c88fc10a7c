"""Application pipeline – Pipeline class."""
from __future__ import annotations

from typing import Any, Awaitable, Callable, Sequence

from fundly_events.application.pipeline.middleware import (
    Delivery,
    EventMiddleware,
    HandleNext,
    PublishNext,
)
from fundly_events.kernel.events import Event


class Pipeline:
    """An ordered chain of middleware wrapped around the publish and handle paths.

    The first middleware added is the outermost one on both paths.
    """

    def __init__(self, middlewares: Sequence[EventMiddleware] | None = None) -> None:
        self._middlewares: list[EventMiddleware] = list(middlewares or [])

    def add(self, middleware: EventMiddleware) -> "Pipeline":
        """Append a middleware (fluent API)."""
        self._middlewares.append(middleware)
        return self

    @property
    def middlewares(self) -> tuple[EventMiddleware, ...]:
        return tuple(self._middlewares)

    async def publish(self, events: Sequence[Event], terminal: PublishNext) -> None:
        await self._chain("on_publish", terminal)(events)

    async def handle(self, delivery: Delivery, terminal: HandleNext) -> None:
        await self._chain("on_handle", terminal)(delivery)

    def _chain(
        self,
        hook: str,
        terminal: Callable[[Any], Awaitable[None]],
    ) -> Callable[[Any], Awaitable[None]]:
        chain = terminal
        for mw in reversed(self._middlewares):
            _next = chain
            _hook = getattr(mw, hook)

            async def _wrap(
                req: Any,
                *,
                _n: Callable[[Any], Awaitable[None]] = _next,
                _h: Callable[..., Awaitable[None]] = _hook,
            ) -> None:
                await _h(req, _n)

            chain = _wrap
        return chain


__all__ = ["Pipeline"]
