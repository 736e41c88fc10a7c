"""SQLAlchemy adapter – table definitions for the event store and saga store."""
from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

event_store_table = Table(
    "event_store",
    metadata,
    # insertion sequence, breaks timestamp ties in append order
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("event_id", String(64), nullable=False, unique=True),
    Column("event_type", String(128), nullable=False, index=True),
    Column("timestamp", BigInteger, nullable=False, index=True),
    Column("version", String(32), nullable=False),
    Column("correlation_id", String(64), nullable=True, index=True),
    Column("causation_id", String(64), nullable=True),
    Column("metadata_json", Text, nullable=False, default="{}"),
    Column("payload_json", Text, nullable=False),
)

saga_instances_table = Table(
    "saga_instances",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("saga_type", String(128), nullable=False, index=True),
    Column("aggregate_id", String(128), nullable=False, index=True),
    Column("status", String(32), nullable=False, index=True),
    Column("current_step", Integer, nullable=False, default=0),
    Column("data_json", Text, nullable=False, default="{}"),
    Column("error_message", Text, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Column("completed_at", DateTime(timezone=True), nullable=True),
    Column("cancel_requested", Boolean, nullable=False, default=False),
)

saga_steps_table = Table(
    "saga_steps",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("saga_id", String(64), nullable=False, index=True),
    Column("step_number", Integer, nullable=False),
    Column("step_name", String(128), nullable=False),
    Column("status", String(32), nullable=False),
    Column("attempt_count", Integer, nullable=False, default=0),
    Column("error_message", Text, nullable=True),
    Column("executed_at", DateTime(timezone=True), nullable=True),
    Column("compensated_at", DateTime(timezone=True), nullable=True),
    Column("event_id", String(64), nullable=True),
    UniqueConstraint("saga_id", "step_number", name="uq_saga_steps_saga_step"),
)


__all__ = ["event_store_table", "metadata", "saga_instances_table", "saga_steps_table"]
