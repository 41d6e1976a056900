"""Shared fixtures: a temporary local database, provisioned from in-memory rows."""

from __future__ import annotations

from pathlib import Path

import pytest

from mariner.etl.provisioning import ProvisioningPipeline
from mariner.etl.sources import StationRecord, ZipcodeRecord, ZoneRecord
from mariner.persistence.db_manager import DatabaseManager

# Chatham, MA
CHATHAM = (41.6885, -69.9511)

ZONES = [
    # 3.1 mi north of Chatham
    ZoneRecord("ANZ254", "Provincetown to Chatham to Nantucket out 20 NM", 41.7334, -69.9511),
    # 41.0 mi north of Chatham
    ZoneRecord("ANZ237", "Massachusetts Bay", 42.2819, -69.9511),
    # 55 mi north of Chatham, outside a 50 mi radius
    ZoneRecord("ANZ251", "Massachusetts Bay and Ipswich Bay", 42.4846, -69.9511),
    ZoneRecord("PZZ530", "San Pablo Bay, Suisun Bay", 38.0500, -122.3000),
]

STATIONS = [
    StationRecord("8447435", "Chatham, Lydia Cove", "MA", 41.6883, -69.9517),
    StationRecord("8443970", "Boston", "MA", 42.3539, -71.0503),
    StationRecord("9414290", "San Francisco", "CA", 37.8063, -122.4659),
]

ZIPCODES = [
    ZipcodeRecord("02633", "Chatham", "MA", 41.6885, -69.9511),
    ZipcodeRecord("02659", "South Chatham", "MA", 41.6790, -70.0270),
    ZipcodeRecord("02108", "Boston", "MA", 42.3576, -71.0684),
    ZipcodeRecord("02109", "Boston", "MA", 42.3600, -71.0540),
]


class FakeSources:
    """In-memory reference sources; counts calls and can fail on demand."""

    def __init__(self, zones=None, stations=None, zipcodes=None, fail_on: str | None = None):
        self._zones = ZONES if zones is None else zones
        self._stations = STATIONS if stations is None else stations
        self._zipcodes = ZIPCODES if zipcodes is None else zipcodes
        self.fail_on = fail_on
        self.calls: list[str] = []

    def _emit(self, kind: str, rows: list, report):
        self.calls.append(kind)
        report(f"Loading {kind}...")
        if self.fail_on == kind:
            raise RuntimeError(f"{kind} download failed")
        return list(rows)

    def zones(self, report):
        return self._emit("zones", self._zones, report)

    def stations(self, report):
        return self._emit("stations", self._stations, report)

    def zipcodes(self, report):
        return self._emit("zipcodes", self._zipcodes, report)


@pytest.fixture
def db_manager(tmp_path: Path):
    manager = DatabaseManager(tmp_path / "marine.db")
    yield manager
    manager.close()


@pytest.fixture
def provisioned(db_manager: DatabaseManager) -> DatabaseManager:
    ProvisioningPipeline(db_manager, FakeSources()).run_blocking(report=lambda _: None)
    return db_manager
