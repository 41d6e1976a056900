"""Reference data sources for provisioning: NOAA zones, tide stations, zip codes.

Each source yields plain records; the pipeline owns the database writes.
"""

from __future__ import annotations

import csv
import io
import logging
import tempfile
import zipfile
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import httpx
import shapefile

from mariner.config import Settings

logger = logging.getLogger(__name__)

Report = Callable[[str], None]


@dataclass(frozen=True)
class ZoneRecord:
    zone_code: str
    zone_name: str
    center_lat: float
    center_lon: float
    bbox: tuple[float, float, float, float] | None = None  # min_lat, max_lat, min_lon, max_lon


@dataclass(frozen=True)
class StationRecord:
    id: str
    name: str
    state: str
    latitude: float
    longitude: float


@dataclass(frozen=True)
class ZipcodeRecord:
    zipcode: str
    city: str
    state: str
    latitude: float
    longitude: float


class ReferenceSources(Protocol):
    """Where the pipeline gets its rows from. Tests pass in-memory lists."""

    def zones(self, report: Report) -> Iterable[ZoneRecord]: ...

    def stations(self, report: Report) -> Iterable[StationRecord]: ...

    def zipcodes(self, report: Report) -> Iterable[ZipcodeRecord]: ...


class NoaaReferenceSources:
    """Downloads the public NOAA / zip-code datasets.

    Called from the provisioning worker thread, hence the synchronous
    ``httpx.Client``.
    """

    def __init__(self, settings: Settings, http_client: httpx.Client | None = None):
        self._settings = settings
        self._client = http_client or httpx.Client(
            timeout=120.0,
            follow_redirects=True,
            headers={"User-Agent": settings.user_agent},
        )

    # ------------------------------------------------------------------
    # Marine zones (NWS shapefile)
    # ------------------------------------------------------------------

    def zones(self, report: Report) -> Iterator[ZoneRecord]:
        url = self._settings.zones_shapefile_url
        report(f"Downloading NOAA marine zones from {url}...")
        resp = self._client.get(url)
        resp.raise_for_status()

        with tempfile.TemporaryDirectory(prefix="mariner-zones-") as tmp:
            with zipfile.ZipFile(io.BytesIO(resp.content)) as archive:
                _safe_extract(archive, Path(tmp))
            shp_files = sorted(Path(tmp).rglob("*.shp"))
            if not shp_files:
                raise ValueError(f"No .shp file in {url}")

            report("Extracting marine zone shapefile...")
            with shapefile.Reader(str(shp_files[0])) as reader:
                for shape_rec in reader.iterShapeRecords():
                    record = _parse_zone(shape_rec)
                    if record is not None:
                        yield record

    # ------------------------------------------------------------------
    # Tide stations (CO-OPS metadata API)
    # ------------------------------------------------------------------

    def stations(self, report: Report) -> list[StationRecord]:
        base = self._settings.stations_api_url
        report(f"Downloading tide station data from {base}...")
        resp = self._client.get(f"{base}/stations.json", params={"type": "tidepredictions"})
        resp.raise_for_status()
        return parse_stations(resp.json())

    # ------------------------------------------------------------------
    # Zip codes (CSV)
    # ------------------------------------------------------------------

    def zipcodes(self, report: Report) -> Iterator[ZipcodeRecord]:
        url = self._settings.zipcodes_csv_url
        report(f"Downloading zipcode data from {url}...")
        resp = self._client.get(url)
        resp.raise_for_status()
        return parse_zipcode_csv(resp.text)


# ------------------------------------------------------------------
# Parsing
# ------------------------------------------------------------------


def _parse_zone(shape_rec) -> ZoneRecord | None:
    """Map one shapefile record (fields ID, NAME, LON, LAT) to a ZoneRecord."""
    attrs = shape_rec.record.as_dict()
    code = str(attrs.get("ID", "")).strip().upper()
    if not code:
        return None
    try:
        lon = float(attrs.get("LON"))
        lat = float(attrs.get("LAT"))
    except (TypeError, ValueError):
        logger.warning("Skipping zone %s: no center coordinates", code)
        return None

    bbox = None
    shape_bbox = getattr(shape_rec.shape, "bbox", None)
    if shape_bbox is not None and len(shape_bbox) == 4:
        xmin, ymin, xmax, ymax = shape_bbox
        bbox = (ymin, ymax, xmin, xmax)

    return ZoneRecord(
        zone_code=code,
        zone_name=str(attrs.get("NAME", "")).strip(),
        center_lat=lat,
        center_lon=lon,
        bbox=bbox,
    )


def parse_stations(payload: dict) -> list[StationRecord]:
    stations = []
    for raw in payload.get("stations", []):
        try:
            stations.append(
                StationRecord(
                    id=str(raw["id"]),
                    name=raw.get("name") or "",
                    state=raw.get("state") or "",
                    latitude=float(raw["lat"]),
                    longitude=float(raw["lng"]),
                )
            )
        except (KeyError, TypeError, ValueError):
            logger.debug("Skipping malformed station entry: %r", raw)
    return stations


def parse_zipcode_csv(text: str) -> Iterator[ZipcodeRecord]:
    """Rows of ``code,city,state,county,area_code,lat,lon`` (header skipped)."""
    reader = csv.reader(io.StringIO(text))
    next(reader, None)
    for row in reader:
        if len(row) < 7:
            continue
        try:
            lat, lon = float(row[5]), float(row[6])
        except ValueError:
            continue
        yield ZipcodeRecord(zipcode=row[0], city=row[1], state=row[2], latitude=lat, longitude=lon)


def _safe_extract(archive: zipfile.ZipFile, dest: Path) -> None:
    root = dest.resolve()
    for member in archive.namelist():
        target = (dest / member).resolve()
        if root != target and root not in target.parents:
            raise ValueError(f"Illegal path in archive: {member}")
    archive.extractall(dest)
