"""Messages consumed by the reducer.

Completion messages for entity work carry the ``session`` their command was
issued in; the reducer drops them once that session is over.
"""

from __future__ import annotations

from dataclasses import dataclass

from mariner.contracts.alert import AlertData
from mariner.contracts.geo import Location, StationCandidate, ZoneCandidate
from mariner.contracts.port import SavedPort
from mariner.contracts.tide import TideData
from mariner.contracts.weather import MarineConditions, ThreeDayForecast


class Message:
    """Base class for everything posted to the inbound queue."""


@dataclass(frozen=True)
class SessionMessage(Message):
    session: int


# ---------------------------------------------------------------------------
# Terminal / process
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyPressed(Message):
    """A key name: a printable character, or ``enter``, ``esc``, ``tab``,
    ``backspace``, ``up``, ``down``, ``ctrl+c``."""

    key: str


@dataclass(frozen=True)
class WindowResized(Message):
    width: int
    height: int


@dataclass(frozen=True)
class FatalError(Message):
    error: Exception


# ---------------------------------------------------------------------------
# Provisioning
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProvisionStatus(Message):
    text: str


@dataclass(frozen=True)
class ProvisionFinished(Message):
    error: Exception | None = None


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GeocodeCompleted(SessionMessage):
    query: str
    location: Location | None = None
    error: Exception | None = None


@dataclass(frozen=True)
class ZonesFound(SessionMessage):
    zones: tuple[ZoneCandidate, ...] = ()
    error: Exception | None = None


@dataclass(frozen=True)
class ZoneLoaded(SessionMessage):
    zone: ZoneCandidate | None = None
    error: Exception | None = None


@dataclass(frozen=True)
class StationsFound(SessionMessage):
    stations: tuple[StationCandidate, ...] = ()
    error: Exception | None = None
    remote: bool = False


# ---------------------------------------------------------------------------
# Fetches
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WeatherFetched(SessionMessage):
    conditions: MarineConditions | None = None
    forecast: ThreeDayForecast | None = None
    error: Exception | None = None


@dataclass(frozen=True)
class TidesFetched(SessionMessage):
    tides: TideData | None = None
    error: Exception | None = None


@dataclass(frozen=True)
class AlertsFetched(SessionMessage):
    alerts: AlertData | None = None
    error: Exception | None = None


# ---------------------------------------------------------------------------
# Saved ports
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SavedPortsLoaded(Message):
    ports: tuple[SavedPort, ...] = ()
    error: Exception | None = None


@dataclass(frozen=True)
class PortLoaded(SessionMessage):
    port: SavedPort | None = None
    error: Exception | None = None


@dataclass(frozen=True)
class PortSaved(Message):
    name: str
    port: SavedPort | None = None
    error: Exception | None = None


@dataclass(frozen=True)
class PortDeleted(Message):
    name: str
    error: Exception | None = None
