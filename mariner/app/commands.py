"""Intents returned by the reducer and executed by the dispatcher."""

from __future__ import annotations

from dataclasses import dataclass

from mariner.contracts.geo import Location, StationCandidate, ZoneCandidate


class Command:
    """Base class; each concrete command is one unit of background work."""


@dataclass(frozen=True)
class Batch(Command):
    """Independent commands dispatched together. No ordering, no join."""

    commands: tuple[Command, ...]


@dataclass(frozen=True)
class Quit(Command):
    pass


# Provisioning


@dataclass(frozen=True)
class StartProvisioning(Command):
    pass


@dataclass(frozen=True)
class WaitProvisionStatus(Command):
    pass


# Lookups


@dataclass(frozen=True)
class Geocode(Command):
    session: int
    query: str


@dataclass(frozen=True)
class FindNearbyZones(Command):
    session: int
    location: Location


@dataclass(frozen=True)
class FindNearbyStations(Command):
    session: int
    location: Location


@dataclass(frozen=True)
class SearchStations(Command):
    """Remote station search by name; results are ranked from *location* when known."""

    session: int
    query: str
    location: Location | None = None


@dataclass(frozen=True)
class LoadZoneByCode(Command):
    session: int
    code: str


# Fetches


@dataclass(frozen=True)
class FetchWeather(Command):
    session: int
    zone_code: str


@dataclass(frozen=True)
class FetchTides(Command):
    session: int
    station_id: str


@dataclass(frozen=True)
class FetchAlerts(Command):
    session: int
    zone_code: str


# Saved ports


@dataclass(frozen=True)
class LoadSavedPorts(Command):
    pass


@dataclass(frozen=True)
class LoadPort(Command):
    session: int
    name: str


@dataclass(frozen=True)
class SavePort(Command):
    name: str
    query: str
    location: Location
    zone: ZoneCandidate
    station: StationCandidate | None = None


@dataclass(frozen=True)
class DeletePort(Command):
    name: str
