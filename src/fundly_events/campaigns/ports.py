"""Campaigns – repository ports used by the campaign creation saga."""
from __future__ import annotations

import abc
import dataclasses
from datetime import datetime


@dataclasses.dataclass
class CampaignRecord:
    id: str
    owner_id: str
    title: str
    slug: str
    goal_amount: float
    category_id: str | None = None
    visibility: str = "public"
    end_date: str | None = None
    status: str = "active"
    deleted_at: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class CampaignRepository(abc.ABC):
    """Port — campaign write model.

    Soft-deleted campaigns stay readable through :meth:`get` but no longer
    hold their slug.
    """

    @abc.abstractmethod
    async def slug_exists(self, slug: str) -> bool: ...

    @abc.abstractmethod
    async def create(self, record: CampaignRecord) -> None: ...

    @abc.abstractmethod
    async def get(self, campaign_id: str) -> CampaignRecord | None: ...

    @abc.abstractmethod
    async def soft_delete(self, campaign_id: str) -> None: ...


class ProfileRepository(abc.ABC):
    """Port — user profile role and counters."""

    @abc.abstractmethod
    async def get_role(self, user_id: str) -> str: ...

    @abc.abstractmethod
    async def set_role(self, user_id: str, role: str) -> None: ...

    @abc.abstractmethod
    async def get_campaign_count(self, user_id: str) -> int: ...

    @abc.abstractmethod
    async def increment_campaign_count(self, user_id: str) -> int:
        """Add one campaign to the user's counter and return the new value."""

    @abc.abstractmethod
    async def decrement_campaign_count(self, user_id: str) -> int:
        """Remove one campaign (never below zero) and return the new value."""


__all__ = ["CampaignRecord", "CampaignRepository", "ProfileRepository"]
