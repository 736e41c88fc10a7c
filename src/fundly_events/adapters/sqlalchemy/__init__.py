"""SQLAlchemy adapters – async event store and saga store."""
from fundly_events.adapters.sqlalchemy.event_store import SQLAlchemyEventStore
from fundly_events.adapters.sqlalchemy.saga_store import SQLAlchemySagaStore
from fundly_events.adapters.sqlalchemy.session import SqlAlchemySessionFactory
from fundly_events.adapters.sqlalchemy.tables import metadata

__all__ = ["SQLAlchemyEventStore", "SQLAlchemySagaStore", "SqlAlchemySessionFactory", "metadata"]
