"""Application projections – per-campaign statistics read model."""
from __future__ import annotations

import dataclasses
from typing import Any

from fundly_events.application.projections.projector import Projector
from fundly_events.kernel.events import Event, EventType


@dataclasses.dataclass(frozen=True)
class CampaignStats:
    campaign_id: str
    title: str
    slug: str
    goal_amount: float
    owner_id: str
    total_raised: float = 0.0
    donation_count: int = 0
    donors: frozenset[str] = frozenset()
    refund_count: int = 0
    total_refunded: float = 0.0
    status: str = "active"
    goal_reached: bool = False
    currency: str | None = None

    @property
    def unique_donors(self) -> int:
        return len(self.donors)

    @property
    def progress(self) -> float:
        """Fraction of the goal raised so far; 0.0 when there is no goal."""
        if self.goal_amount <= 0:
            return 0.0
        return self.total_raised / self.goal_amount


class CampaignStatsProjector(Projector[CampaignStats]):
    """Title, goal and money raised per campaign.

    The row is created by ``campaign.created``; donation events for a
    campaign with no row are ignored.  ``campaign.deleted`` removes the row,
    so a rolled-back campaign leaves nothing behind on the live path or on
    rebuild.
    """

    name = "campaign_stats"
    handled_types = frozenset(
        {
            EventType.CAMPAIGN_CREATED.value,
            EventType.CAMPAIGN_UPDATED.value,
            EventType.CAMPAIGN_DELETED.value,
            EventType.CAMPAIGN_STATUS_CHANGED.value,
            EventType.CAMPAIGN_GOAL_REACHED.value,
            EventType.DONATION_COMPLETED.value,
            EventType.DONATION_REFUNDED.value,
        }
    )
    target_versions = {EventType.DONATION_COMPLETED.value: "2.0.0"}

    def key_for(self, event: Event) -> str | None:
        return event.payload.get("campaign_id")

    def apply(self, row: CampaignStats | None, event: Event) -> CampaignStats | None:
        p = event.payload
        kind = EventType(event.event_type)

        if kind is EventType.CAMPAIGN_CREATED:
            if row is not None:
                return row
            return CampaignStats(
                campaign_id=p["campaign_id"],
                title=p["title"],
                slug=p["slug"],
                goal_amount=float(p["goal_amount"]),
                owner_id=p["user_id"],
            )

        if row is None:
            return None
        if kind is EventType.CAMPAIGN_DELETED:
            return None

        if kind is EventType.DONATION_COMPLETED:
            total = row.total_raised + float(p["amount"])
            donors = row.donors | {p["donor_id"]} if p.get("donor_id") else row.donors
            return dataclasses.replace(
                row,
                total_raised=total,
                donation_count=row.donation_count + 1,
                donors=donors,
                goal_reached=row.goal_reached or total >= row.goal_amount,
                currency=row.currency or p.get("currency"),
            )
        if kind is EventType.DONATION_REFUNDED:
            amount = float(p["refund_amount"])
            return dataclasses.replace(
                row,
                total_raised=max(0.0, row.total_raised - amount),
                refund_count=row.refund_count + 1,
                total_refunded=row.total_refunded + amount,
            )
        if kind is EventType.CAMPAIGN_UPDATED:
            return dataclasses.replace(row, **self._updated_fields(p["changes"]))
        if kind is EventType.CAMPAIGN_STATUS_CHANGED:
            return dataclasses.replace(row, status=p["new_status"])
        if kind is EventType.CAMPAIGN_GOAL_REACHED:
            return dataclasses.replace(row, goal_reached=True)
        return row

    @staticmethod
    def _updated_fields(changes: dict[str, Any]) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        if "title" in changes:
            fields["title"] = str(changes["title"])
        if "slug" in changes:
            fields["slug"] = str(changes["slug"])
        if "goal_amount" in changes:
            fields["goal_amount"] = float(changes["goal_amount"])
        return fields


__all__ = ["CampaignStats", "CampaignStatsProjector"]
