"""Explicit construction of the whole event system from settings.

There is no module-level bus: every call to :func:`build_event_system`
returns a fresh, independent set of collaborators.

Example::

    system = build_event_system(EnvSettingsLoader().load(EventSystemSettings))
    await system.start()
    saga_id = await system.orchestrator.start(
        CAMPAIGN_CREATION, campaign_id, {"campaign_id": campaign_id, ...}
    )
    await system.close()
"""
from __future__ import annotations

import dataclasses
from typing import Any

from fundly_events.application.dead_letter import DeadLetterQueue
from fundly_events.application.event_bus import EventBus
from fundly_events.application.event_store import EventStore, InMemoryEventStore
from fundly_events.application.idempotency import InMemoryProcessedEventStore
from fundly_events.application.pipeline import (
    CircuitBreakerMiddleware,
    IdempotencyMiddleware,
    LoggingMiddleware,
    MetricsMiddleware,
    Pipeline,
    ValidationMiddleware,
)
from fundly_events.application.projections import (
    CampaignStats,
    CampaignStatsProjector,
    InMemoryProjectionStore,
)
from fundly_events.application.saga import InMemorySagaStore, SagaOrchestrator, SagaStore
from fundly_events.campaigns import (
    CampaignRepository,
    InMemoryCampaignRepository,
    InMemoryProfileRepository,
    ProfileRepository,
    build_campaign_creation_saga,
)
from fundly_events.config.settings import EnvSettingsLoader, EventSystemSettings
from fundly_events.kernel.events import EventFactory, EventUpcaster, SchemaRegistry
from fundly_events.kernel.time import Clock, SystemClock
from fundly_events.observability.logging import configure_logging, get_logger
from fundly_events.observability.metrics import EventMetrics, Metrics

logger = get_logger(__name__)


@dataclasses.dataclass
class EventSystem:
    """Every collaborator of one event system instance."""

    settings: EventSystemSettings
    clock: Clock
    registry: SchemaRegistry
    upcaster: EventUpcaster
    event_factory: EventFactory
    store: EventStore
    dead_letters: DeadLetterQueue
    breakers: CircuitBreakerMiddleware
    metrics: EventMetrics
    pipeline: Pipeline
    bus: EventBus
    saga_store: SagaStore
    orchestrator: SagaOrchestrator
    campaigns: CampaignRepository
    profiles: ProfileRepository
    campaign_stats: CampaignStatsProjector
    session_factory: Any = None

    async def start(self) -> None:
        """Create database tables when SQL stores are configured."""
        if self.session_factory is None:
            return
        from fundly_events.adapters.sqlalchemy import SQLAlchemyEventStore, SQLAlchemySagaStore

        await SQLAlchemyEventStore.create_table(self.session_factory.engine)
        await SQLAlchemySagaStore.create_table(self.session_factory.engine)
        logger.info("event_system.tables_ready")

    async def close(self) -> None:
        """Finish queued deliveries, stop the bus and release the database engine."""
        await self.bus.drain()
        await self.bus.close()
        if self.session_factory is not None:
            await self.session_factory.dispose()


def build_event_system(
    settings: EventSystemSettings | None = None,
    *,
    clock: Clock | None = None,
    campaigns: CampaignRepository | None = None,
    profiles: ProfileRepository | None = None,
    metrics_backend: Metrics | None = None,
    setup_logging: bool = False,
) -> EventSystem:
    """Wire an :class:`EventSystem`.

    *settings* default to :class:`EnvSettingsLoader`.  A ``database_url``
    selects the SQLAlchemy event and saga stores; otherwise everything is in
    memory.  Middleware order is logging, validation, idempotency, metrics,
    circuit breaker.  Bus and saga metrics go to *metrics_backend* (no-op
    by default) and are summarised in ``EventSystem.metrics``.  The campaign
    creation saga is registered and the campaign stats projector is
    attached to the bus.
    """
    settings = settings or EnvSettingsLoader().load(EventSystemSettings)
    if setup_logging:
        configure_logging(settings.log_level, json=settings.log_json)
    clock = clock or SystemClock()

    registry = SchemaRegistry.default()
    upcaster = EventUpcaster.default()
    factory = EventFactory(clock=clock, registry=registry, source="fundly-events")

    session_factory = None
    store: EventStore
    saga_store: SagaStore
    if settings.database_url:
        from fundly_events.adapters.sqlalchemy import (
            SQLAlchemyEventStore,
            SQLAlchemySagaStore,
            SqlAlchemySessionFactory,
        )

        session_factory = SqlAlchemySessionFactory(settings.database_url)
        store = SQLAlchemyEventStore(session_factory)
        saga_store = SQLAlchemySagaStore(session_factory)
    else:
        store = InMemoryEventStore()
        saga_store = InMemorySagaStore()

    breakers = CircuitBreakerMiddleware(settings.breaker_policy(), clock)
    metrics = EventMetrics(metrics_backend, clock=clock)
    pipeline = Pipeline(
        [
            LoggingMiddleware(),
            ValidationMiddleware(registry),
            IdempotencyMiddleware(InMemoryProcessedEventStore(settings.idempotency_ttl_seconds, clock)),
            MetricsMiddleware(metrics),
            breakers,
        ]
    )
    dead_letters = DeadLetterQueue(clock)
    bus = EventBus(
        store,
        pipeline=pipeline,
        dead_letters=dead_letters,
        handler_retry=settings.handler_retry(),
        batch_size=settings.batch_size,
    )

    campaigns = campaigns or InMemoryCampaignRepository(clock)
    profiles = profiles or InMemoryProfileRepository()
    campaign_stats = CampaignStatsProjector(InMemoryProjectionStore[CampaignStats](), store, upcaster)
    campaign_stats.attach(bus)

    orchestrator = SagaOrchestrator(
        saga_store,
        bus,
        factory,
        step_retry=settings.step_retry(),
        compensation_retry=settings.compensation_retry(),
        clock=clock,
        metrics=metrics,
    )
    orchestrator.register(build_campaign_creation_saga(campaigns, profiles, campaign_stats))

    logger.info(
        "event_system.built",
        store=type(store).__name__,
        saga_store=type(saga_store).__name__,
        batch_size=settings.batch_size,
    )
    return EventSystem(
        settings=settings,
        clock=clock,
        registry=registry,
        upcaster=upcaster,
        event_factory=factory,
        store=store,
        dead_letters=dead_letters,
        breakers=breakers,
        metrics=metrics,
        pipeline=pipeline,
        bus=bus,
        saga_store=saga_store,
        orchestrator=orchestrator,
        campaigns=campaigns,
        profiles=profiles,
        campaign_stats=campaign_stats,
        session_factory=session_factory,
    )


__all__ = ["EventSystem", "build_event_system"]
