"""Tide predictions: high/low events relative to MLLW."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import Field

from mariner.contracts.common import MarineModel
from mariner.contracts.enums import TideType


class TideEvent(MarineModel):
    time: datetime
    type: TideType
    height_ft: float = Field(..., description="feet above MLLW")


class TideData(MarineModel):
    station_id: str
    station_name: str = ""
    events: tuple[TideEvent, ...] = ()  # ordered by time
    updated_at: datetime

    def events_for_day(self, day: date) -> list[TideEvent]:
        return [e for e in self.events if e.time.date() == day]
