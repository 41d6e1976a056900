"""The application snapshot owned by the reducer.

``AppModel`` is frozen: the reducer derives a new snapshot for every message
with ``model_copy(update=...)`` and the view only ever reads it.
"""

from __future__ import annotations

from pydantic import Field

from mariner.contracts.alert import AlertData
from mariner.contracts.common import MarineModel
from mariner.contracts.enums import AppState
from mariner.contracts.geo import Location, StationCandidate, ZoneCandidate
from mariner.contracts.port import SavedPort
from mariner.contracts.tide import TideData
from mariner.contracts.weather import MarineConditions, ThreeDayForecast

# Provisioning lines kept for display.
MAX_STATUS_LINES = 20


class LoadingFlags(MarineModel):
    """One flag per fetch of the active batch; they complete independently."""

    weather: bool = False
    tides: bool = False
    alerts: bool = False

    @property
    def pending(self) -> bool:
        return self.weather or self.tides or self.alerts


class StartupOptions(MarineModel):
    """What the command line asked to open once the local index is ready."""

    port: str | None = None
    station: str | None = None
    location: str | None = None


class AppModel(MarineModel):
    state: AppState = AppState.SEARCH
    session: int = 0

    # Search
    search_input: str = ""
    query: str = ""
    direct_zone: str | None = None
    location: Location | None = None

    # Zones and stations
    zones: tuple[ZoneCandidate, ...] = ()
    zone_cursor: int = 0
    selected_zone: ZoneCandidate | None = None
    stations: tuple[StationCandidate, ...] = ()
    selected_station: StationCandidate | None = None
    tides_requested: bool = False

    # Fetched data
    weather: MarineConditions | None = None
    forecast: ThreeDayForecast | None = None
    tides: TideData | None = None
    alerts: AlertData | None = None
    loading: LoadingFlags = Field(default_factory=LoadingFlags)

    error: str = ""
    notice: str = ""
    provisioning_status: tuple[str, ...] = ()
    startup: StartupOptions = Field(default_factory=StartupOptions)

    # Saved ports
    saved_ports: tuple[SavedPort, ...] = ()
    saved_cursor: int = 0
    port_name_input: str = ""

    width: int = 80
    height: int = 24
    quitting: bool = False

    @property
    def highlighted_zone(self) -> ZoneCandidate | None:
        if 0 <= self.zone_cursor < len(self.zones):
            return self.zones[self.zone_cursor]
        return None

    @property
    def highlighted_port(self) -> SavedPort | None:
        if 0 <= self.saved_cursor < len(self.saved_ports):
            return self.saved_ports[self.saved_cursor]
        return None


# Fields discarded together on every full entity switch.
ENTITY_RESET: dict[str, object] = {
    "query": "",
    "direct_zone": None,
    "location": None,
    "zones": (),
    "zone_cursor": 0,
    "selected_zone": None,
    "stations": (),
    "selected_station": None,
    "tides_requested": False,
    "weather": None,
    "forecast": None,
    "tides": None,
    "alerts": None,
    "loading": LoadingFlags(),
    "error": "",
}
