"""Application saga – SagaStore port and InMemorySagaStore."""
from __future__ import annotations

import abc
import dataclasses

from fundly_events.application.saga.state import SagaInstance, SagaStatus, SagaStepRecord


class SagaStore(abc.ABC):
    """Port — persist and retrieve saga instances and their step records.

    Every write is a single-row upsert keyed by the record's primary id.
    """

    @abc.abstractmethod
    async def save_instance(self, instance: SagaInstance) -> None:
        """Insert or replace *instance*."""

    @abc.abstractmethod
    async def get_instance(self, saga_id: str) -> SagaInstance | None:
        """Return the instance with *saga_id*, or ``None``."""

    @abc.abstractmethod
    async def list_instances(self, status: SagaStatus | None = None) -> list[SagaInstance]:
        """Return instances, oldest first, optionally only those in *status*."""

    @abc.abstractmethod
    async def save_step(self, record: SagaStepRecord) -> None:
        """Insert or replace *record*."""

    @abc.abstractmethod
    async def list_steps(self, saga_id: str) -> list[SagaStepRecord]:
        """Return the step records of *saga_id* ordered by ``step_number``."""


class InMemorySagaStore(SagaStore):
    """In-memory :class:`SagaStore` for tests and local development.

    Stores and returns copies so callers never share mutable records.
    """

    def __init__(self) -> None:
        self._instances: dict[str, SagaInstance] = {}
        self._steps: dict[str, SagaStepRecord] = {}

    async def save_instance(self, instance: SagaInstance) -> None:
        self._instances[instance.id] = dataclasses.replace(instance, data=dict(instance.data))

    async def get_instance(self, saga_id: str) -> SagaInstance | None:
        instance = self._instances.get(saga_id)
        if instance is None:
            return None
        return dataclasses.replace(instance, data=dict(instance.data))

    async def list_instances(self, status: SagaStatus | None = None) -> list[SagaInstance]:
        found = [
            dataclasses.replace(i, data=dict(i.data))
            for i in self._instances.values()
            if status is None or i.status == status
        ]
        return sorted(found, key=lambda i: i.created_at)

    async def save_step(self, record: SagaStepRecord) -> None:
        self._steps[record.id] = dataclasses.replace(record)

    async def list_steps(self, saga_id: str) -> list[SagaStepRecord]:
        found = [dataclasses.replace(r) for r in self._steps.values() if r.saga_id == saga_id]
        return sorted(found, key=lambda r: r.step_number)


__all__ = ["InMemorySagaStore", "SagaStore"]
