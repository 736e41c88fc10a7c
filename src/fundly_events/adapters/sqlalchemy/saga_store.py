"""SQLAlchemy adapter – SQLAlchemySagaStore."""
from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any, Callable

from sqlalchemy import Table, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fundly_events.adapters.sqlalchemy.tables import metadata, saga_instances_table, saga_steps_table
from fundly_events.application.saga import (
    SagaInstance,
    SagaStatus,
    SagaStepRecord,
    SagaStore,
    StepStatus,
)
from fundly_events.kernel.errors import InfrastructureError


def _aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class SQLAlchemySagaStore(SagaStore):
    """Persists saga instances and step records in ``saga_instances`` / ``saga_steps``.

    Writes are single-row upserts keyed by primary id: an ``UPDATE`` by id,
    followed by an ``INSERT`` when no row matched.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]) -> None:
        self._session_factory = session_factory

    @classmethod
    async def create_table(cls, bind: Any) -> None:
        """Create both saga tables on the async engine *bind* if missing."""
        async with bind.begin() as conn:
            await conn.run_sync(
                metadata.create_all, tables=[saga_instances_table, saga_steps_table]
            )

    async def save_instance(self, instance: SagaInstance) -> None:
        await self._upsert(saga_instances_table, instance.id, {
            "saga_type": instance.saga_type,
            "aggregate_id": instance.aggregate_id,
            "status": instance.status.value,
            "current_step": instance.current_step,
            "data_json": json.dumps(instance.data, default=str),
            "error_message": instance.error_message,
            "created_at": instance.created_at,
            "updated_at": instance.updated_at,
            "completed_at": instance.completed_at,
            "cancel_requested": instance.cancel_requested,
        })

    async def get_instance(self, saga_id: str) -> SagaInstance | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(saga_instances_table).where(saga_instances_table.c.id == saga_id)
            )
            row = result.first()
        return self._instance_from_row(row) if row is not None else None

    async def list_instances(self, status: SagaStatus | None = None) -> list[SagaInstance]:
        t = saga_instances_table
        stmt = select(t).order_by(t.c.created_at)
        if status is not None:
            stmt = stmt.where(t.c.status == status.value)
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).fetchall()
        return [self._instance_from_row(r) for r in rows]

    async def save_step(self, record: SagaStepRecord) -> None:
        await self._upsert(saga_steps_table, record.id, {
            "saga_id": record.saga_id,
            "step_number": record.step_number,
            "step_name": record.step_name,
            "status": record.status.value,
            "attempt_count": record.attempt_count,
            "error_message": record.error_message,
            "executed_at": record.executed_at,
            "compensated_at": record.compensated_at,
            "event_id": record.event_id,
        })

    async def list_steps(self, saga_id: str) -> list[SagaStepRecord]:
        t = saga_steps_table
        stmt = select(t).where(t.c.saga_id == saga_id).order_by(t.c.step_number)
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).fetchall()
        return [
            SagaStepRecord(
                id=row.id,
                saga_id=row.saga_id,
                step_number=row.step_number,
                step_name=row.step_name,
                status=StepStatus(row.status),
                attempt_count=row.attempt_count,
                error_message=row.error_message,
                executed_at=_aware(row.executed_at),
                compensated_at=_aware(row.compensated_at),
                event_id=row.event_id,
            )
            for row in rows
        ]

    async def _upsert(self, table: Table, row_id: str, values: dict[str, Any]) -> None:
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(
                    update(table).where(table.c.id == row_id).values(**values)
                )
                if result.rowcount == 0:
                    await session.execute(insert(table).values(id=row_id, **values))
        except SQLAlchemyError as exc:
            raise InfrastructureError(f"Failed to save {table.name} row '{row_id}'", cause=exc) from exc

    @staticmethod
    def _instance_from_row(row: Any) -> SagaInstance:
        return SagaInstance(
            id=row.id,
            saga_type=row.saga_type,
            aggregate_id=row.aggregate_id,
            status=SagaStatus(row.status),
            current_step=row.current_step,
            data=json.loads(row.data_json) if row.data_json else {},
            error_message=row.error_message,
            created_at=_aware(row.created_at),
            updated_at=_aware(row.updated_at),
            completed_at=_aware(row.completed_at),
            cancel_requested=bool(row.cancel_requested),
        )


__all__ = ["SQLAlchemySagaStore"]
