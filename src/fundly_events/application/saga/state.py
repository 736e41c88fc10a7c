"""Application saga – status enums and persisted records."""
from __future__ import annotations

import dataclasses
import enum
from datetime import datetime
from typing import Any


class SagaStatus(str, enum.Enum):
    """Lifecycle states of a saga instance."""

    PENDING = "pending"
    """Created or executing forward steps."""

    COMPLETED = "completed"
    """All steps completed successfully."""

    FAILED = "failed"
    """A step failed (or the saga was cancelled) and compensation has run."""

    COMPENSATING = "compensating"
    """Completed steps are being undone in reverse order."""

    @property
    def is_terminal(self) -> bool:
        return self in (SagaStatus.COMPLETED, SagaStatus.FAILED)


class StepStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    COMPENSATED = "compensated"


@dataclasses.dataclass
class SagaInstance:
    """Durable state of one saga run."""

    id: str
    saga_type: str
    aggregate_id: str
    status: SagaStatus
    created_at: datetime
    updated_at: datetime
    current_step: int = 0
    """Number of steps completed so far (0 before the first one)."""
    data: dict[str, Any] = dataclasses.field(default_factory=dict)
    error_message: str | None = None
    completed_at: datetime | None = None
    cancel_requested: bool = False


@dataclasses.dataclass
class SagaStepRecord:
    """Durable state of one step of one saga instance."""

    id: str
    saga_id: str
    step_number: int
    """1-based position of the step in its saga definition."""
    step_name: str
    status: StepStatus = StepStatus.PENDING
    attempt_count: int = 0
    error_message: str | None = None
    executed_at: datetime | None = None
    compensated_at: datetime | None = None
    event_id: str | None = None
    """Id of the domain event published when the step completed."""


__all__ = ["SagaInstance", "SagaStatus", "SagaStepRecord", "StepStatus"]
