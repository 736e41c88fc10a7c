"""Kernel events – EventType vocabulary."""
from __future__ import annotations

from enum import Enum


class EventDomain(str, Enum):
    USER = "user"
    CAMPAIGN = "campaign"
    DONATION = "donation"
    ORGANIZATION = "organization"
    ADMIN = "admin"


class EventType(str, Enum):
    """Closed vocabulary of domain event types (``<domain>.<occurrence>``)."""

    USER_REGISTERED = "user.registered"
    USER_LOGGED_IN = "user.logged_in"
    USER_PROFILE_UPDATED = "user.profile_updated"
    USER_CAMPAIGN_FOLLOWED = "user.campaign_followed"
    USER_CAMPAIGN_UNFOLLOWED = "user.campaign_unfollowed"
    USER_ROLE_PROMOTED = "user.role_promoted"
    USER_PROFILE_STATS_UPDATED = "user.profile_stats_updated"

    CAMPAIGN_CREATED = "campaign.created"
    CAMPAIGN_UPDATED = "campaign.updated"
    CAMPAIGN_DELETED = "campaign.deleted"
    CAMPAIGN_GOAL_REACHED = "campaign.goal_reached"
    CAMPAIGN_STATUS_CHANGED = "campaign.status_changed"
    CAMPAIGN_SLUG_RESERVED = "campaign.slug_reserved"
    CAMPAIGN_PROJECTIONS_INITIALIZED = "campaign.projections_initialized"

    DONATION_INITIATED = "donation.initiated"
    DONATION_COMPLETED = "donation.completed"
    DONATION_FAILED = "donation.failed"
    DONATION_REFUNDED = "donation.refunded"

    ORGANIZATION_CREATED = "organization.created"
    ORGANIZATION_VERIFIED = "organization.verified"
    ORGANIZATION_REJECTED = "organization.rejected"
    ORGANIZATION_UPDATED = "organization.updated"
    ORGANIZATION_DELETED = "organization.deleted"

    ADMIN_USER_SUSPENDED = "admin.user_suspended"
    ADMIN_USER_DELETED = "admin.user_deleted"
    ADMIN_USER_ROLE_ASSIGNED = "admin.user_role_assigned"
    ADMIN_CAMPAIGN_APPROVED = "admin.campaign_approved"
    ADMIN_CAMPAIGN_REJECTED = "admin.campaign_rejected"
    ADMIN_CAMPAIGN_FEATURED = "admin.campaign_featured"
    ADMIN_CAMPAIGN_UNFEATURED = "admin.campaign_unfeatured"

    @property
    def domain(self) -> EventDomain:
        return EventDomain(self.value.split(".", 1)[0])

    def __str__(self) -> str:
        return self.value


def event_type_value(event_type: EventType | str) -> str:
    """Return the dotted string for *event_type*."""
    return event_type.value if isinstance(event_type, EventType) else str(event_type)


__all__ = ["EventDomain", "EventType", "event_type_value"]
