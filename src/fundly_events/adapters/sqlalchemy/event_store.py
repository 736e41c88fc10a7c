"""SQLAlchemy adapter – SQLAlchemyEventStore."""
from __future__ import annotations

import json
from typing import Any, AsyncIterator, Callable, Sequence

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fundly_events.adapters.sqlalchemy.tables import event_store_table, metadata
from fundly_events.application.event_store import EventFilter, EventStore, EventStoreError
from fundly_events.kernel.events import DuplicateEventError, Event


class SQLAlchemyEventStore(EventStore):
    """Append-only event store on a single ``event_store`` table.

    ``event_id`` is declared ``UNIQUE`` so the database itself rejects a
    second append of the same event.  Each operation opens its own session
    from *session_factory*; a batch is inserted in one transaction.

    The store does not create its table.  Call :meth:`create_table` once
    (at startup or from a migration) before using it.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]) -> None:
        self._session_factory = session_factory

    @classmethod
    async def create_table(cls, bind: Any) -> None:
        """Create the ``event_store`` table on the async engine *bind* if missing."""
        async with bind.begin() as conn:
            await conn.run_sync(metadata.create_all, tables=[event_store_table])

    async def append(self, event: Event) -> None:
        await self.append_batch([event])

    async def append_batch(self, events: Sequence[Event]) -> None:
        if not events:
            return
        ids = [e.event_id for e in events]
        seen: set[str] = set()
        for event_id in ids:
            if event_id in seen:
                raise DuplicateEventError(event_id)
            seen.add(event_id)

        try:
            async with self._session_factory() as session, session.begin():
                existing = await session.execute(
                    select(event_store_table.c.event_id).where(event_store_table.c.event_id.in_(ids))
                )
                taken = existing.scalars().first()
                if taken is not None:
                    raise DuplicateEventError(taken)
                await session.execute(insert(event_store_table), [self._to_row(e) for e in events])
        except IntegrityError as exc:
            raise DuplicateEventError(ids[0]) from exc
        except SQLAlchemyError as exc:
            raise EventStoreError(f"Failed to append {len(events)} event(s)", cause=exc) from exc

    async def query(self, filter: EventFilter | None = None) -> AsyncIterator[Event]:  # noqa: A002
        criteria = filter or EventFilter()
        t = event_store_table
        stmt = select(t).order_by(t.c.timestamp, t.c.seq)
        types = criteria.event_types
        if types is not None:
            stmt = stmt.where(t.c.event_type.in_(sorted(types)))
        if criteria.from_ts is not None:
            stmt = stmt.where(t.c.timestamp >= criteria.from_ts)
        if criteria.to_ts is not None:
            stmt = stmt.where(t.c.timestamp <= criteria.to_ts)
        if criteria.correlation_id is not None:
            stmt = stmt.where(t.c.correlation_id == criteria.correlation_id)

        async with self._session_factory() as session:
            result = await session.stream(stmt)
            async for row in result:
                yield self._from_row(row)

    async def get(self, event_id: str) -> Event | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(event_store_table).where(event_store_table.c.event_id == event_id)
            )
            row = result.first()
        return self._from_row(row) if row is not None else None

    @staticmethod
    def _to_row(event: Event) -> dict[str, Any]:
        return {
            "event_id": event.event_id,
            "event_type": event.event_type,
            "timestamp": event.timestamp,
            "version": event.version,
            "correlation_id": event.correlation_id,
            "causation_id": event.causation_id,
            "metadata_json": json.dumps(dict(event.metadata), default=str),
            "payload_json": json.dumps(dict(event.payload), default=str),
        }

    @staticmethod
    def _from_row(row: Any) -> Event:
        return Event(
            event_id=row.event_id,
            event_type=row.event_type,
            timestamp=row.timestamp,
            version=row.version,
            correlation_id=row.correlation_id,
            causation_id=row.causation_id,
            metadata=json.loads(row.metadata_json) if row.metadata_json else {},
            payload=json.loads(row.payload_json),
        )


__all__ = ["SQLAlchemyEventStore"]
