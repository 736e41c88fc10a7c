"""Campaigns – in-memory repositories for tests and local development."""
from __future__ import annotations

import dataclasses

from fundly_events.campaigns.errors import SlugTakenError
from fundly_events.campaigns.ports import CampaignRecord, CampaignRepository, ProfileRepository
from fundly_events.kernel.errors import ConflictError, NotFoundError
from fundly_events.kernel.time import Clock, SystemClock

DEFAULT_ROLE = "visitor"


class InMemoryCampaignRepository(CampaignRepository):
    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._campaigns: dict[str, CampaignRecord] = {}

    async def slug_exists(self, slug: str) -> bool:
        return any(c.slug == slug and not c.is_deleted for c in self._campaigns.values())

    async def create(self, record: CampaignRecord) -> None:
        if record.id in self._campaigns:
            raise ConflictError(f"Campaign '{record.id}' already exists")
        if await self.slug_exists(record.slug):
            raise SlugTakenError(record.slug)
        self._campaigns[record.id] = dataclasses.replace(record)

    async def get(self, campaign_id: str) -> CampaignRecord | None:
        record = self._campaigns.get(campaign_id)
        return dataclasses.replace(record) if record is not None else None

    async def soft_delete(self, campaign_id: str) -> None:
        record = self._campaigns.get(campaign_id)
        if record is None:
            raise NotFoundError("Campaign", campaign_id)
        if record.deleted_at is None:
            record.deleted_at = self._clock.now()
            record.status = "deleted"

    def all(self) -> list[CampaignRecord]:
        return [dataclasses.replace(r) for r in self._campaigns.values()]


@dataclasses.dataclass
class _Profile:
    role: str = DEFAULT_ROLE
    campaign_count: int = 0


class InMemoryProfileRepository(ProfileRepository):
    """Profiles are created on first access with the ``visitor`` role."""

    def __init__(self, roles: dict[str, str] | None = None) -> None:
        self._profiles: dict[str, _Profile] = {
            user_id: _Profile(role=role) for user_id, role in (roles or {}).items()
        }

    def _profile(self, user_id: str) -> _Profile:
        return self._profiles.setdefault(user_id, _Profile())

    async def get_role(self, user_id: str) -> str:
        return self._profile(user_id).role

    async def set_role(self, user_id: str, role: str) -> None:
        self._profile(user_id).role = role

    async def get_campaign_count(self, user_id: str) -> int:
        return self._profile(user_id).campaign_count

    async def increment_campaign_count(self, user_id: str) -> int:
        profile = self._profile(user_id)
        profile.campaign_count += 1
        return profile.campaign_count

    async def decrement_campaign_count(self, user_id: str) -> int:
        profile = self._profile(user_id)
        profile.campaign_count = max(0, profile.campaign_count - 1)
        return profile.campaign_count


__all__ = ["DEFAULT_ROLE", "InMemoryCampaignRepository", "InMemoryProfileRepository"]
