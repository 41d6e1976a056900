"""Nearest-entity lookups on the local index → ZoneCandidate / StationCandidate.

Two-phase search:

1. **Bounding-box prefilter**: an indexed range query on the center
   coordinates. The radius is expanded into a latitude delta of
   ``radius / 69`` degrees and a longitude delta of
   ``radius / (69 * cos(lat))`` degrees, both widened by
   :data:`BBOX_MARGIN` so the box always contains the whole radius disk.
2. **Exact pass**: haversine great-circle distance for every row in the
   box, keeping only rows within the true radius, sorted nearest-first.

The margin is what guarantees there are no false negatives; it must stay at
least the worst-case ratio between the box and the true disk extent if it
is ever tuned.
"""

from __future__ import annotations

import logging
import math
import sqlite3
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from mariner.contracts.common import MarineModel
from mariner.contracts.geo import StationCandidate, ZoneCandidate
from mariner.errors import IndexQueryError, NotFoundError
from mariner.persistence.db_manager import DatabaseManager
from mariner.persistence.errors import PersistenceError

logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3959.0
MILES_PER_DEGREE_LAT = 69.0
BBOX_MARGIN = 1.5

# Below this cos(lat) the longitude delta spans the whole globe.
_MIN_COS_LAT = 1e-6

C = TypeVar("C", bound=MarineModel)


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points, in statute miles."""
    lat1_rad, lat2_rad = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    )
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def rank_by_distance(
    stations: list[StationCandidate], latitude: float, longitude: float
) -> list[StationCandidate]:
    """Attach distances from the point and order nearest first. Ties keep input order."""
    ranked = [
        s.model_copy(
            update={"distance_miles": haversine_miles(latitude, longitude, s.latitude, s.longitude)}
        )
        for s in stations
    ]
    ranked.sort(key=lambda s: s.distance_miles)
    return ranked


def bounding_box(
    lat: float, lon: float, radius_miles: float
) -> tuple[float, float, list[tuple[float, float]]]:
    """Prefilter box around a point.

    Returns ``(lat_min, lat_max, lon_ranges)``. Longitude is a list of
    ranges because a box crossing the antimeridian is split in two.
    """
    lat_delta = radius_miles / MILES_PER_DEGREE_LAT * BBOX_MARGIN
    cos_lat = math.cos(math.radians(lat))

    lat_min = max(-90.0, lat - lat_delta)
    lat_max = min(90.0, lat + lat_delta)

    if cos_lat < _MIN_COS_LAT:
        return lat_min, lat_max, [(-180.0, 180.0)]

    lon_delta = radius_miles / (MILES_PER_DEGREE_LAT * cos_lat) * BBOX_MARGIN
    if lon_delta >= 180.0:
        return lat_min, lat_max, [(-180.0, 180.0)]

    lon_min, lon_max = lon - lon_delta, lon + lon_delta
    if lon_min < -180.0:
        return lat_min, lat_max, [(lon_min + 360.0, 180.0), (-180.0, lon_max)]
    if lon_max > 180.0:
        return lat_min, lat_max, [(lon_min, 180.0), (-180.0, lon_max - 360.0)]
    return lat_min, lat_max, [(lon_min, lon_max)]


class _NearbyIndex(ABC, Generic[C]):
    """Shared query engine; subclasses describe their table and row mapping."""

    kind = "entity"
    _table = ""
    _key_column = ""
    _lat_column = ""
    _lon_column = ""
    _select_columns = ""
    _uppercase_key = False

    def __init__(self, manager: DatabaseManager):
        self._manager = manager

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def find_nearby(self, latitude: float, longitude: float, radius_miles: float) -> list[C]:
        """Entities within *radius_miles* of the point, nearest first.

        Ties keep insertion order. An empty list is a normal result.
        """
        if radius_miles < 0:
            raise ValueError(f"radius_miles must be >= 0, got {radius_miles}")

        lat_min, lat_max, lon_ranges = bounding_box(latitude, longitude, radius_miles)
        rows = self._query_box(lat_min, lat_max, lon_ranges)

        results: list[tuple[float, C]] = []
        for row in rows:
            distance = haversine_miles(
                latitude, longitude, row[self._lat_column], row[self._lon_column]
            )
            if distance <= radius_miles:
                results.append((distance, self._to_candidate(row, distance)))

        results.sort(key=lambda item: item[0])
        logger.debug(
            "%s search at (%.4f, %.4f) r=%.1f mi: %d in box, %d within radius",
            self.kind, latitude, longitude, radius_miles, len(rows), len(results),
        )
        return [candidate for _, candidate in results]

    def find_by_code(self, code: str) -> C:
        """Exact lookup by key. Distance is reported as ``0.0``."""
        key = code.strip().upper() if self._uppercase_key else code.strip()
        sql = f"SELECT {self._select_columns} FROM {self._table} WHERE {self._key_column} = ?"
        try:
            with self._manager.connection() as conn:
                row = conn.execute(sql, (key,)).fetchone()
        except (sqlite3.Error, PersistenceError) as exc:
            raise IndexQueryError(f"querying {self.kind} {code}: {exc}") from exc
        if row is None:
            raise NotFoundError(self.kind, code)
        return self._to_candidate(row, 0.0)

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _query_box(
        self,
        lat_min: float,
        lat_max: float,
        lon_ranges: list[tuple[float, float]],
    ) -> list[sqlite3.Row]:
        lon_clause = " OR ".join(f"{self._lon_column} BETWEEN ? AND ?" for _ in lon_ranges)
        sql = (
            f"SELECT {self._select_columns} FROM {self._table} "
            f"WHERE {self._lat_column} BETWEEN ? AND ? AND ({lon_clause}) "
            f"ORDER BY rowid"
        )
        params: list[float] = [lat_min, lat_max]
        for lo, hi in lon_ranges:
            params.extend((lo, hi))

        try:
            with self._manager.connection() as conn:
                return conn.execute(sql, params).fetchall()
        except (sqlite3.Error, PersistenceError) as exc:
            raise IndexQueryError(f"querying nearby {self.kind}s: {exc}") from exc

    @abstractmethod
    def _to_candidate(self, row: sqlite3.Row, distance: float) -> C:
        """Map one selected row to its candidate contract."""


class ZoneIndex(_NearbyIndex[ZoneCandidate]):
    """NOAA marine forecast zones keyed by zone code (e.g. ``ANZ254``)."""

    kind = "marine zone"
    _table = "marine_zones"
    _key_column = "zone_code"
    _lat_column = "center_lat"
    _lon_column = "center_lon"
    _select_columns = "zone_code, zone_name, center_lat, center_lon"
    _uppercase_key = True

    def _to_candidate(self, row: sqlite3.Row, distance: float) -> ZoneCandidate:
        return ZoneCandidate(
            code=row["zone_code"],
            name=row["zone_name"] or "",
            distance_miles=distance,
        )


class StationIndex(_NearbyIndex[StationCandidate]):
    """NOAA CO-OPS tide prediction stations keyed by station id."""

    kind = "tide station"
    _table = "tide_stations"
    _key_column = "id"
    _lat_column = "latitude"
    _lon_column = "longitude"
    _select_columns = "id, name, state, latitude, longitude"

    def _to_candidate(self, row: sqlite3.Row, distance: float) -> StationCandidate:
        return StationCandidate(
            id=row["id"],
            name=row["name"] or "",
            state=row["state"] or "",
            latitude=row["latitude"],
            longitude=row["longitude"],
            distance_miles=distance,
        )
