"""Kernel events – payload models, one per ``(event type, version)``.

These models are the wire contract for every consumer of the event stream
(projections, notification senders, analytics).  Payload keys are the
snake_case field names below.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

EntityRef = Annotated[str, Field(min_length=1)]


class EventPayload(BaseModel):
    """Base class for payload models: immutable, unknown keys rejected."""

    model_config = ConfigDict(extra="forbid", frozen=True)


# ---------------------------------------------------------------------------
# user.*
# ---------------------------------------------------------------------------

AuthMethod = Literal["email", "google", "oauth"]


class UserRegistered(EventPayload):
    user_id: EntityRef
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    registration_method: AuthMethod = "email"


class UserLoggedIn(EventPayload):
    user_id: EntityRef
    login_method: AuthMethod = "email"
    ip_address: str | None = None


class UserProfileUpdated(EventPayload):
    user_id: EntityRef
    changes: dict[str, Any]


class UserCampaignFollowed(EventPayload):
    user_id: EntityRef
    campaign_id: EntityRef


class UserCampaignUnfollowed(EventPayload):
    user_id: EntityRef
    campaign_id: EntityRef


class UserRolePromoted(EventPayload):
    user_id: EntityRef
    old_role: str
    new_role: str


class UserProfileStatsUpdated(EventPayload):
    user_id: EntityRef
    campaign_count: int = Field(ge=0)


# ---------------------------------------------------------------------------
# campaign.*
# ---------------------------------------------------------------------------

CampaignStatus = Literal["draft", "active", "paused", "completed", "cancelled"]


class CampaignCreated(EventPayload):
    campaign_id: EntityRef
    user_id: EntityRef
    title: str = Field(min_length=1)
    slug: str = Field(pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    goal_amount: float = Field(gt=0)
    category_id: str | None = None
    visibility: Literal["public", "private"] = "public"
    end_date: str | None = None


class CampaignUpdated(EventPayload):
    campaign_id: EntityRef
    user_id: EntityRef
    changes: dict[str, Any]
    previous_values: dict[str, Any] | None = None


class CampaignDeleted(EventPayload):
    campaign_id: EntityRef
    user_id: EntityRef
    reason: str | None = None


class CampaignGoalReached(EventPayload):
    campaign_id: EntityRef
    goal_amount: float = Field(gt=0)
    total_raised: float = Field(ge=0)
    donor_count: int = Field(ge=0)


class CampaignStatusChanged(EventPayload):
    campaign_id: EntityRef
    previous_status: CampaignStatus
    new_status: CampaignStatus
    reason: str | None = None


class CampaignSlugReserved(EventPayload):
    campaign_id: EntityRef
    slug: str = Field(min_length=1)


class CampaignProjectionsInitialized(EventPayload):
    campaign_id: EntityRef


# ---------------------------------------------------------------------------
# donation.*
# ---------------------------------------------------------------------------


class DonationInitiated(EventPayload):
    donation_id: EntityRef
    campaign_id: EntityRef
    donor_id: str | None = None
    amount: float = Field(gt=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)


class DonationCompleted(EventPayload):
    donation_id: EntityRef
    campaign_id: EntityRef
    donor_id: str | None = None
    amount: float = Field(gt=0)
    transaction_id: str | None = None


class DonationCompletedV2(DonationCompleted):
    """``donation.completed`` 2.0.0: currency became mandatory."""

    currency: str = Field(min_length=3, max_length=3)


class DonationFailed(EventPayload):
    donation_id: EntityRef
    campaign_id: str | None = None
    reason: str
    error_code: str | None = None
    retryable: bool = False


class DonationRefunded(EventPayload):
    donation_id: EntityRef
    campaign_id: EntityRef
    donor_id: str | None = None
    refund_amount: float = Field(gt=0)
    refunded_by: str | None = None
    reason: str | None = None


# ---------------------------------------------------------------------------
# organization.*
# ---------------------------------------------------------------------------


class OrganizationCreated(EventPayload):
    organization_id: EntityRef
    legal_name: str = Field(min_length=1)
    created_by: EntityRef
    verification_status: Literal["pending", "verified", "rejected"] = "pending"


class OrganizationVerified(EventPayload):
    organization_id: EntityRef
    verified_by: EntityRef


class OrganizationRejected(EventPayload):
    organization_id: EntityRef
    rejected_by: EntityRef
    reason: str


class OrganizationUpdated(EventPayload):
    organization_id: EntityRef
    updated_by: EntityRef
    changes: dict[str, Any]


class OrganizationDeleted(EventPayload):
    organization_id: EntityRef
    deleted_by: EntityRef
    reason: str | None = None


# ---------------------------------------------------------------------------
# admin.*
# ---------------------------------------------------------------------------


class AdminUserSuspended(EventPayload):
    user_id: EntityRef
    suspended_by: EntityRef
    reason: str
    duration_days: int = Field(gt=0)


class AdminUserDeleted(EventPayload):
    user_id: EntityRef
    deleted_by: EntityRef
    reason: str | None = None


class AdminUserRoleAssigned(EventPayload):
    user_id: EntityRef
    assigned_by: EntityRef
    old_role: str | None = None
    new_role: str


class AdminCampaignApproved(EventPayload):
    campaign_id: EntityRef
    approved_by: EntityRef


class AdminCampaignRejected(EventPayload):
    campaign_id: EntityRef
    rejected_by: EntityRef
    reason: str


class AdminCampaignFeatured(EventPayload):
    campaign_id: EntityRef
    featured_by: EntityRef


class AdminCampaignUnfeatured(EventPayload):
    campaign_id: EntityRef
    unfeatured_by: EntityRef


__all__ = [
    "AdminCampaignApproved",
    "AdminCampaignFeatured",
    "AdminCampaignRejected",
    "AdminCampaignUnfeatured",
    "AdminUserDeleted",
    "AdminUserRoleAssigned",
    "AdminUserSuspended",
    "CampaignCreated",
    "CampaignDeleted",
    "CampaignGoalReached",
    "CampaignProjectionsInitialized",
    "CampaignSlugReserved",
    "CampaignStatusChanged",
    "CampaignUpdated",
    "DonationCompleted",
    "DonationCompletedV2",
    "DonationFailed",
    "DonationInitiated",
    "DonationRefunded",
    "EventPayload",
    "OrganizationCreated",
    "OrganizationDeleted",
    "OrganizationRejected",
    "OrganizationUpdated",
    "OrganizationVerified",
    "UserCampaignFollowed",
    "UserCampaignUnfollowed",
    "UserLoggedIn",
    "UserProfileStatsUpdated",
    "UserProfileUpdated",
    "UserRegistered",
    "UserRolePromoted",
]
