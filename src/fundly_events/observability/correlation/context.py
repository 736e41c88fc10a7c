"""Observability – CorrelationContext for event causation chains."""
from __future__ import annotations

import contextlib
import dataclasses
from contextvars import ContextVar
from typing import Iterator
from uuid import uuid4


@dataclasses.dataclass(frozen=True)
class RequestContext:
    """Ambient context for one logical operation (request, saga run, …).

    ``causation_id`` is the id of the event that triggered the work
    currently executing; events created inside the context inherit it.
    """

    correlation_id: str
    causation_id: str | None = None
    user_id: str | None = None

    @classmethod
    def new(cls, user_id: str | None = None) -> "RequestContext":
        return cls(correlation_id=str(uuid4()), user_id=user_id)


_CTX_VAR: ContextVar[RequestContext | None] = ContextVar("_fundly_request_ctx", default=None)


class CorrelationContext:
    """Ambient correlation context stored in a ``ContextVar``."""

    @staticmethod
    def set(ctx: RequestContext) -> None:
        _CTX_VAR.set(ctx)

    @staticmethod
    def get() -> RequestContext | None:
        return _CTX_VAR.get()

    @staticmethod
    def get_or_new() -> RequestContext:
        ctx = _CTX_VAR.get()
        if ctx is None:
            ctx = RequestContext.new()
            _CTX_VAR.set(ctx)
        return ctx

    @staticmethod
    def clear() -> None:
        _CTX_VAR.set(None)

    @staticmethod
    @contextlib.contextmanager
    def scope(ctx: RequestContext) -> Iterator[RequestContext]:
        """Install *ctx* for the duration of a ``with`` block."""
        token = _CTX_VAR.set(ctx)
        try:
            yield ctx
        finally:
            _CTX_VAR.reset(token)


__all__ = ["CorrelationContext", "RequestContext"]
