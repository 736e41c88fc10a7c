"""Campaigns – the campaign creation saga.

Steps, in order:

1. ``validate_and_reserve_slug`` – fail fast if the slug is taken.
2. ``create_campaign_record`` – undone by a soft delete plus ``campaign.deleted``.
3. ``update_user_role`` – promote the owner to ``creator``; undone by
   restoring the previous role.
4. ``create_projections`` – build the stats read model; undone by dropping it.
5. ``update_profile_stats`` – bump the owner's campaign counter; undone by
   decrementing it.

The saga's initial context carries the ``campaign.created`` payload fields
(``campaign_id``, ``user_id``, ``title``, ``slug``, ``goal_amount`` and the
optional ``category_id``, ``visibility``, ``end_date``).
"""
from __future__ import annotations

from typing import Any, Mapping

from fundly_events.application.projections import CampaignStatsProjector
from fundly_events.application.saga import SagaContext, SagaDefinition, SagaStep, StepEvent
from fundly_events.campaigns.errors import SlugTakenError
from fundly_events.campaigns.ports import CampaignRecord, CampaignRepository, ProfileRepository
from fundly_events.kernel.errors import ApplicationError
from fundly_events.kernel.events import EventType

CAMPAIGN_CREATION = "campaign_creation"
CREATOR_ROLE = "creator"
# roles that already allow creating campaigns are never changed
ELEVATED_ROLES = frozenset({CREATOR_ROLE, "org_admin", "admin", "super_admin"})


class ValidateSlugStep(SagaStep):
    name = "validate_and_reserve_slug"

    def __init__(self, campaigns: CampaignRepository) -> None:
        self._campaigns = campaigns

    async def execute(self, ctx: SagaContext) -> Mapping[str, Any] | None:
        if await self._campaigns.slug_exists(ctx["slug"]):
            raise SlugTakenError(ctx["slug"])
        return None

    def event(self, ctx: SagaContext) -> StepEvent | None:
        return StepEvent(
            EventType.CAMPAIGN_SLUG_RESERVED,
            {"campaign_id": ctx["campaign_id"], "slug": ctx["slug"]},
        )


class CreateCampaignRecordStep(SagaStep):
    name = "create_campaign_record"

    def __init__(self, campaigns: CampaignRepository) -> None:
        self._campaigns = campaigns

    async def execute(self, ctx: SagaContext) -> Mapping[str, Any] | None:
        await self._campaigns.create(
            CampaignRecord(
                id=ctx["campaign_id"],
                owner_id=ctx["user_id"],
                title=ctx["title"],
                slug=ctx["slug"],
                goal_amount=float(ctx["goal_amount"]),
                category_id=ctx.get("category_id"),
                visibility=ctx.get("visibility", "public"),
                end_date=ctx.get("end_date"),
            )
        )
        return None

    async def compensate(self, ctx: SagaContext) -> None:
        await self._campaigns.soft_delete(ctx["campaign_id"])

    def event(self, ctx: SagaContext) -> StepEvent | None:
        return StepEvent(
            EventType.CAMPAIGN_CREATED,
            {
                "campaign_id": ctx["campaign_id"],
                "user_id": ctx["user_id"],
                "title": ctx["title"],
                "slug": ctx["slug"],
                "goal_amount": ctx["goal_amount"],
                "category_id": ctx.get("category_id"),
                "visibility": ctx.get("visibility", "public"),
                "end_date": ctx.get("end_date"),
            },
        )

    def compensation_event(self, ctx: SagaContext) -> StepEvent | None:
        return StepEvent(
            EventType.CAMPAIGN_DELETED,
            {
                "campaign_id": ctx["campaign_id"],
                "user_id": ctx["user_id"],
                "reason": "campaign creation rolled back",
            },
        )


class PromoteUserRoleStep(SagaStep):
    name = "update_user_role"

    def __init__(self, profiles: ProfileRepository) -> None:
        self._profiles = profiles

    async def execute(self, ctx: SagaContext) -> Mapping[str, Any] | None:
        previous = await self._profiles.get_role(ctx["user_id"])
        promoted = previous not in ELEVATED_ROLES
        if promoted:
            await self._profiles.set_role(ctx["user_id"], CREATOR_ROLE)
        return {"previous_role": previous, "role_promoted": promoted}

    async def compensate(self, ctx: SagaContext) -> None:
        if ctx.get("role_promoted"):
            await self._profiles.set_role(ctx["user_id"], ctx["previous_role"])

    def event(self, ctx: SagaContext) -> StepEvent | None:
        if not ctx.get("role_promoted"):
            return None
        return StepEvent(
            EventType.USER_ROLE_PROMOTED,
            {
                "user_id": ctx["user_id"],
                "old_role": ctx["previous_role"],
                "new_role": CREATOR_ROLE,
            },
        )


class InitializeProjectionsStep(SagaStep):
    name = "create_projections"

    def __init__(self, projector: CampaignStatsProjector) -> None:
        self._projector = projector

    async def execute(self, ctx: SagaContext) -> Mapping[str, Any] | None:
        row = await self._projector.rebuild(ctx["campaign_id"])
        if row is None:
            raise ApplicationError(
                f"No campaign.created event stored for campaign '{ctx['campaign_id']}'"
            )
        return None

    async def compensate(self, ctx: SagaContext) -> None:
        await self._projector.drop(ctx["campaign_id"])

    def event(self, ctx: SagaContext) -> StepEvent | None:
        return StepEvent(
            EventType.CAMPAIGN_PROJECTIONS_INITIALIZED,
            {"campaign_id": ctx["campaign_id"]},
        )


class UpdateProfileStatsStep(SagaStep):
    name = "update_profile_stats"

    def __init__(self, profiles: ProfileRepository) -> None:
        self._profiles = profiles

    async def execute(self, ctx: SagaContext) -> Mapping[str, Any] | None:
        count = await self._profiles.increment_campaign_count(ctx["user_id"])
        return {"campaign_count": count}

    async def compensate(self, ctx: SagaContext) -> None:
        await self._profiles.decrement_campaign_count(ctx["user_id"])

    def event(self, ctx: SagaContext) -> StepEvent | None:
        return StepEvent(
            EventType.USER_PROFILE_STATS_UPDATED,
            {"user_id": ctx["user_id"], "campaign_count": ctx["campaign_count"]},
        )


def build_campaign_creation_saga(
    campaigns: CampaignRepository,
    profiles: ProfileRepository,
    projector: CampaignStatsProjector,
) -> SagaDefinition:
    """Return the five-step ``campaign_creation`` :class:`SagaDefinition`."""
    return SagaDefinition(
        CAMPAIGN_CREATION,
        [
            ValidateSlugStep(campaigns),
            CreateCampaignRecordStep(campaigns),
            PromoteUserRoleStep(profiles),
            InitializeProjectionsStep(projector),
            UpdateProfileStatsStep(profiles),
        ],
    )


__all__ = [
    "CAMPAIGN_CREATION",
    "CREATOR_ROLE",
    "CreateCampaignRecordStep",
    "InitializeProjectionsStep",
    "PromoteUserRoleStep",
    "UpdateProfileStatsStep",
    "ValidateSlugStep",
    "build_campaign_creation_saga",
]
