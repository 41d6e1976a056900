"""Saved-port service: builds a SavedPort from the current selection and stores it."""

from __future__ import annotations

import logging

from mariner.contracts.geo import Location, StationCandidate, ZoneCandidate
from mariner.contracts.port import SavedPort
from mariner.persistence.geo_index import StationIndex
from mariner.persistence.port_repo import SavedPortRepository

logger = logging.getLogger(__name__)


class PortService:
    """Blocking; the dispatcher runs it in a worker thread."""

    def __init__(
        self,
        repo: SavedPortRepository,
        stations: StationIndex,
        station_radius_miles: float = 50.0,
    ):
        self._repo = repo
        self._stations = stations
        self._station_radius_miles = station_radius_miles

    def list_ports(self) -> list[SavedPort]:
        return self._repo.list_all()

    def get_port(self, name: str) -> SavedPort:
        return self._repo.get(name)

    def delete_port(self, name: str) -> None:
        self._repo.delete(name)

    def save_port(
        self,
        name: str,
        query: str,
        location: Location,
        zone: ZoneCandidate,
        station: StationCandidate | None = None,
    ) -> SavedPort:
        """Save (or overwrite) the port called *name*.

        City / state / zip come from the search query. Without a selected
        station the nearest one within the save radius is used, if any.
        """
        name = name.strip()
        if not name:
            raise ValueError("port name cannot be empty")

        station_id = station.id if station is not None else self._nearest_station_id(location)
        port = SavedPort(
            name=name,
            zone_code=zone.code,
            station_id=station_id,
            latitude=location.latitude,
            longitude=location.longitude,
            **SavedPort.location_fields(query),
        )
        return self._repo.upsert(port)

    def _nearest_station_id(self, location: Location) -> str:
        nearby = self._stations.find_nearby(
            location.latitude, location.longitude, self._station_radius_miles
        )
        if not nearby:
            logger.info(
                "No tide station within %.0f mi of %s", self._station_radius_miles, location.display_name
            )
            return ""
        return nearby[0].id
