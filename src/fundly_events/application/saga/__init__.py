"""Application – saga orchestration with compensating steps."""
from fundly_events.application.saga.context import SagaContext
from fundly_events.application.saga.errors import SagaNotFoundError, UnknownSagaTypeError
from fundly_events.application.saga.orchestrator import CANCELLED, SagaDefinition, SagaOrchestrator
from fundly_events.application.saga.state import (
    SagaInstance,
    SagaStatus,
    SagaStepRecord,
    StepStatus,
)
from fundly_events.application.saga.step import SagaStep, StepEvent
from fundly_events.application.saga.store import InMemorySagaStore, SagaStore

__all__ = [
    "CANCELLED",
    "InMemorySagaStore",
    "SagaContext",
    "SagaDefinition",
    "SagaInstance",
    "SagaNotFoundError",
    "SagaOrchestrator",
    "SagaStatus",
    "SagaStep",
    "SagaStepRecord",
    "SagaStore",
    "StepEvent",
    "StepStatus",
    "UnknownSagaTypeError",
]
