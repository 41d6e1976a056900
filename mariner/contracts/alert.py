"""NWS active alerts for a marine zone."""

from __future__ import annotations

from datetime import datetime, timezone

from mariner.contracts.common import MarineModel
from mariner.contracts.enums import AlertSeverity

MARINE_EVENTS = frozenset({
    "Small Craft Advisory",
    "Gale Warning",
    "Storm Warning",
    "Hurricane Force Wind Warning",
    "Special Marine Warning",
    "Marine Weather Statement",
    "Hazardous Seas Warning",
})


class Alert(MarineModel):
    id: str
    event: str
    headline: str = ""
    description: str = ""
    severity: AlertSeverity = AlertSeverity.UNKNOWN
    urgency: str = ""
    certainty: str = ""
    onset: datetime | None = None
    expires: datetime | None = None
    areas: tuple[str, ...] = ()
    instruction: str = ""

    def is_active(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(tz=timezone.utc)
        if self.onset is not None and now < self.onset:
            return False
        if self.expires is not None and now >= self.expires:
            return False
        return True

    def is_marine(self) -> bool:
        return self.event in MARINE_EVENTS


class AlertData(MarineModel):
    alerts: tuple[Alert, ...] = ()
    updated_at: datetime
