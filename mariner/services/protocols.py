"""Capabilities the dispatcher needs from the outside world.

Production implementations live next to this module; tests pass their own
fakes. Any implementation may raise; the dispatcher maps exceptions to the
error taxonomy in :mod:`mariner.errors`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from mariner.contracts.alert import AlertData
from mariner.contracts.geo import Location, StationCandidate
from mariner.contracts.tide import TideData
from mariner.contracts.weather import MarineConditions, ThreeDayForecast


class Geocoder(Protocol):
    async def geocode(self, query: str) -> Location:
        """Resolve a zip code or "City, ST" to coordinates."""
        ...


class WeatherClient(Protocol):
    async def get_marine_forecast(
        self, zone_code: str
    ) -> tuple[MarineConditions, ThreeDayForecast]:
        """Current conditions plus the multi-day forecast for a marine zone."""
        ...


class TideClient(Protocol):
    async def get_tide_predictions(
        self, station_id: str, start: datetime, end: datetime
    ) -> TideData:
        """High/low predictions between *start* and *end*, ordered by time."""
        ...


class AlertClient(Protocol):
    async def get_active_alerts(self, zone_code: str) -> AlertData:
        """Active NWS alerts for a marine zone."""
        ...


class StationSearchClient(Protocol):
    async def search_by_location(self, query: str) -> list[StationCandidate]:
        """Remote tide-station search by state code or place name."""
        ...
