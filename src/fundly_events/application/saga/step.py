"""Application saga – SagaStep abstract base class."""
from __future__ import annotations

import abc
import dataclasses
from typing import Any, Mapping

from fundly_events.application.saga.context import SagaContext
from fundly_events.kernel.events import EventType


@dataclasses.dataclass(frozen=True)
class StepEvent:
    """Domain event a step asks the orchestrator to publish."""

    event_type: EventType | str
    payload: Mapping[str, Any]


class SagaStep(abc.ABC):
    """A single unit of work within a saga.

    Subclass and implement :meth:`execute`.  Override :meth:`compensate`
    when the step has side effects to undo, and :meth:`event` /
    :meth:`compensation_event` to announce what happened.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Stable name used for logging and step records."""

    @abc.abstractmethod
    async def execute(self, ctx: SagaContext) -> Mapping[str, Any] | None:
        """Run the forward action.

        The returned mapping is merged into *ctx*.  Raise to signal failure;
        a :class:`~fundly_events.kernel.errors.DomainError` is never retried.
        """

    async def compensate(self, ctx: SagaContext) -> None:
        """Undo :meth:`execute`.  The default does nothing."""

    def event(self, ctx: SagaContext) -> StepEvent | None:
        """Event published after :meth:`execute` succeeds, if any."""
        return None

    def compensation_event(self, ctx: SagaContext) -> StepEvent | None:
        """Event published after :meth:`compensate` succeeds, if any."""
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


__all__ = ["SagaStep", "StepEvent"]
