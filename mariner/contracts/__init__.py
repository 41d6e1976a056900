"""Mariner data contracts — Pydantic v2 value objects.

Data authority
--------------

**SQLite** (local cache, ``data/marine-terminal.db``):
- ``ZoneCandidate``: ``marine_zones``, queried by proximity or zone code
- ``StationCandidate``: ``tide_stations``, queried by proximity or station id
- ``Location``: ``zipcodes``, queried by zip code or city/state
- ``SavedPort``: ``saved_ports``, user-owned, keyed by name

**Remote, read-only** (fetched per session, never persisted):
- ``MarineConditions`` / ``ThreeDayForecast``: NWS marine text products
- ``TideData``: NOAA CO-OPS predictions
- ``AlertData``: api.weather.gov active alerts
"""

from mariner.contracts.enums import AlertSeverity, AppState, TideType
from mariner.contracts.common import GeoPoint, MarineModel
from mariner.contracts.geo import Location, StationCandidate, ZoneCandidate
from mariner.contracts.port import SavedPort, is_zipcode
from mariner.contracts.weather import (
    ForecastPeriod,
    MarineConditions,
    SeaState,
    ThreeDayForecast,
    WaveComponent,
    WindData,
)
from mariner.contracts.tide import TideData, TideEvent
from mariner.contracts.alert import Alert, AlertData

__all__ = [
    # Enums
    "AlertSeverity",
    "AppState",
    "TideType",
    # Common
    "GeoPoint",
    "MarineModel",
    # Geo
    "Location",
    "StationCandidate",
    "ZoneCandidate",
    # Ports
    "SavedPort",
    "is_zipcode",
    # Weather
    "ForecastPeriod",
    "MarineConditions",
    "SeaState",
    "ThreeDayForecast",
    "WaveComponent",
    "WindData",
    # Tides
    "TideData",
    "TideEvent",
    # Alerts
    "Alert",
    "AlertData",
]
