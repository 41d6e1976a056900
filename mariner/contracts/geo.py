"""Geographic lookup results: geocoded locations, nearby zones and stations."""

from pydantic import Field

from mariner.contracts.common import GeoPoint, MarineModel


class Location(GeoPoint):
    """Result of geocoding a free-text query (zip code or "City, ST")."""

    display_name: str = ""


class ZoneCandidate(MarineModel):
    """A NOAA marine forecast zone near a location.

    ``distance_miles`` is only meaningful when produced by a nearby search;
    a direct lookup by code always reports ``0.0``.
    """

    code: str = Field(..., min_length=1)
    name: str = ""
    distance_miles: float = Field(default=0.0, ge=0)


class StationCandidate(MarineModel):
    """A NOAA CO-OPS tide prediction station near a location."""

    id: str = Field(..., min_length=1)
    name: str = ""
    state: str = ""
    latitude: float
    longitude: float
    distance_miles: float = Field(default=0.0, ge=0)
