"""Campaigns – the campaign creation saga and its repository ports."""
from fundly_events.campaigns.errors import SlugTakenError
from fundly_events.campaigns.memory import (
    DEFAULT_ROLE,
    InMemoryCampaignRepository,
    InMemoryProfileRepository,
)
from fundly_events.campaigns.ports import CampaignRecord, CampaignRepository, ProfileRepository
from fundly_events.campaigns.saga import (
    CAMPAIGN_CREATION,
    CREATOR_ROLE,
    CreateCampaignRecordStep,
    InitializeProjectionsStep,
    PromoteUserRoleStep,
    UpdateProfileStatsStep,
    ValidateSlugStep,
    build_campaign_creation_saga,
)

__all__ = [
    "CAMPAIGN_CREATION",
    "CREATOR_ROLE",
    "CampaignRecord",
    "CampaignRepository",
    "CreateCampaignRecordStep",
    "DEFAULT_ROLE",
    "InMemoryCampaignRepository",
    "InMemoryProfileRepository",
    "InitializeProjectionsStep",
    "ProfileRepository",
    "PromoteUserRoleStep",
    "SlugTakenError",
    "UpdateProfileStatsStep",
    "ValidateSlugStep",
    "build_campaign_creation_saga",
]
