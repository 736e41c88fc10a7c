"""Kernel events – SchemaRegistry mapping ``(type, version)`` to payload models."""

from __future__ import annotations

from typing import Any, Iterator, Mapping

import pydantic

from fundly_events.kernel.events import schemas
from fundly_events.kernel.events.errors import EventValidationError
from fundly_events.kernel.events.event import DEFAULT_VERSION, Event
from fundly_events.kernel.events.types import EventType, event_type_value

_CATALOG: dict[EventType, type[schemas.EventPayload]] = {
    EventType.USER_REGISTERED: schemas.UserRegistered,
    EventType.USER_LOGGED_IN: schemas.UserLoggedIn,
    EventType.USER_PROFILE_UPDATED: schemas.UserProfileUpdated,
    EventType.USER_CAMPAIGN_FOLLOWED: schemas.UserCampaignFollowed,
    EventType.USER_CAMPAIGN_UNFOLLOWED: schemas.UserCampaignUnfollowed,
    EventType.USER_ROLE_PROMOTED: schemas.UserRolePromoted,
    EventType.USER_PROFILE_STATS_UPDATED: schemas.UserProfileStatsUpdated,
    EventType.CAMPAIGN_CREATED: schemas.CampaignCreated,
    EventType.CAMPAIGN_UPDATED: schemas.CampaignUpdated,
    EventType.CAMPAIGN_DELETED: schemas.CampaignDeleted,
    EventType.CAMPAIGN_GOAL_REACHED: schemas.CampaignGoalReached,
    EventType.CAMPAIGN_STATUS_CHANGED: schemas.CampaignStatusChanged,
    EventType.CAMPAIGN_SLUG_RESERVED: schemas.CampaignSlugReserved,
    EventType.CAMPAIGN_PROJECTIONS_INITIALIZED: schemas.CampaignProjectionsInitialized,
    EventType.DONATION_INITIATED: schemas.DonationInitiated,
    EventType.DONATION_COMPLETED: schemas.DonationCompleted,
    EventType.DONATION_FAILED: schemas.DonationFailed,
    EventType.DONATION_REFUNDED: schemas.DonationRefunded,
    EventType.ORGANIZATION_CREATED: schemas.OrganizationCreated,
    EventType.ORGANIZATION_VERIFIED: schemas.OrganizationVerified,
    EventType.ORGANIZATION_REJECTED: schemas.OrganizationRejected,
    EventType.ORGANIZATION_UPDATED: schemas.OrganizationUpdated,
    EventType.ORGANIZATION_DELETED: schemas.OrganizationDeleted,
    EventType.ADMIN_USER_SUSPENDED: schemas.AdminUserSuspended,
    EventType.ADMIN_USER_DELETED: schemas.AdminUserDeleted,
    EventType.ADMIN_USER_ROLE_ASSIGNED: schemas.AdminUserRoleAssigned,
    EventType.ADMIN_CAMPAIGN_APPROVED: schemas.AdminCampaignApproved,
    EventType.ADMIN_CAMPAIGN_REJECTED: schemas.AdminCampaignRejected,
    EventType.ADMIN_CAMPAIGN_FEATURED: schemas.AdminCampaignFeatured,
    EventType.ADMIN_CAMPAIGN_UNFEATURED: schemas.AdminCampaignUnfeatured,
}


class SchemaRegistry:
    """Looks up and applies the payload model for an event's type and version.

    Use :meth:`default` for the full FundlyHub catalog, or start empty and
    :meth:`register` models in tests.
    """

    def __init__(self) -> None:
        self._models: dict[tuple[str, str], type[pydantic.BaseModel]] = {}

    @classmethod
    def default(cls) -> "SchemaRegistry":
        registry = cls()
        for event_type, model in _CATALOG.items():
            registry.register(event_type, model)
        registry.register(EventType.DONATION_COMPLETED, schemas.DonationCompletedV2, "2.0.0")
        return registry

    def register(
        self,
        event_type: EventType | str,
        model: type[pydantic.BaseModel],
        version: str = DEFAULT_VERSION,
    ) -> None:
        self._models[(event_type_value(event_type), version)] = model

    def model_for(self, event_type: EventType | str, version: str = DEFAULT_VERSION) -> type[pydantic.BaseModel] | None:
        return self._models.get((event_type_value(event_type), version))

    def is_registered(self, event_type: EventType | str, version: str = DEFAULT_VERSION) -> bool:
        return self.model_for(event_type, version) is not None

    def versions(self, event_type: EventType | str) -> list[str]:
        type_value = event_type_value(event_type)
        return sorted(v for (t, v) in self._models if t == type_value)

    def validate_payload(
        self,
        event_type: EventType | str,
        payload: Mapping[str, Any],
        version: str = DEFAULT_VERSION,
    ) -> dict[str, Any]:
        """Validate *payload* and return it normalised (defaults filled in).

        Raises :class:`EventValidationError` for unknown ``(type, version)``
        pairs and for payloads that fail the model.
        """
        type_value = event_type_value(event_type)
        model = self.model_for(type_value, version)
        if model is None:
            raise EventValidationError(
                type_value,
                version,
                f"No schema registered for {type_value}@{version}",
            )
        try:
            instance = model.model_validate(dict(payload))
        except pydantic.ValidationError as exc:
            raise EventValidationError(
                type_value,
                version,
                errors=[
                    {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
                    for err in exc.errors()
                ],
                cause=exc,
            ) from exc
        return instance.model_dump()

    def validate(self, event: Event) -> dict[str, Any]:
        return self.validate_payload(event.event_type, event.payload, event.version)

    def json_schema(self, event_type: EventType | str, version: str = DEFAULT_VERSION) -> dict[str, Any]:
        """JSON Schema of the payload, for publishing the wire contract."""
        model = self.model_for(event_type, version)
        if model is None:
            raise KeyError(f"{event_type_value(event_type)}@{version}")
        return model.model_json_schema()

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(sorted(self._models))

    def __len__(self) -> int:
        return len(self._models)


__all__ = ["SchemaRegistry"]
