"""Application – CQRS projections rebuilt from the event store."""
from fundly_events.application.projections.campaign_stats import CampaignStats, CampaignStatsProjector
from fundly_events.application.projections.projector import Projector
from fundly_events.application.projections.store import InMemoryProjectionStore, ProjectionStore

__all__ = [
    "CampaignStats",
    "CampaignStatsProjector",
    "InMemoryProjectionStore",
    "ProjectionStore",
    "Projector",
]
