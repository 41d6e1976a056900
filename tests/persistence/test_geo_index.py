"""Tests for the nearest-entity lookup on the local index."""

from __future__ import annotations

import math
import random

import pytest

from mariner.errors import IndexQueryError, NotFoundError
from mariner.persistence.db_manager import DatabaseManager
from mariner.persistence.geo_index import (
    BBOX_MARGIN,
    StationIndex,
    _NearbyIndex,
    ZoneIndex,
    bounding_box,
    haversine_miles,
)
from mariner.persistence.schema import MARINE_ZONES_DDL, create_statements
from tests.conftest import CHATHAM


def _zone_table(manager: DatabaseManager, rows: list[tuple[str, float, float]]) -> ZoneIndex:
    with manager.transaction() as conn:
        for stmt in create_statements(MARINE_ZONES_DDL):
            conn.execute(stmt)
        for code, lat, lon in rows:
            conn.execute(
                "INSERT INTO marine_zones (zone_code, zone_name, center_lat, center_lon)"
                " VALUES (?, ?, ?, ?)",
                (code, f"Zone {code}", lat, lon),
            )
    return ZoneIndex(manager)


class TestHaversine:
    def test_zero_distance(self):
        assert haversine_miles(41.0, -70.0, 41.0, -70.0) == 0.0

    def test_one_degree_of_latitude(self):
        assert haversine_miles(0.0, 0.0, 1.0, 0.0) == pytest.approx(69.09, abs=0.01)

    def test_symmetric(self):
        a = haversine_miles(41.6885, -69.9511, 37.8063, -122.4659)
        b = haversine_miles(37.8063, -122.4659, 41.6885, -69.9511)
        assert a == pytest.approx(b)


class TestBoundingBox:
    def test_box_contains_radius_disk(self):
        lat, lon, radius = 41.6885, -69.9511, 50.0
        lat_min, lat_max, lon_ranges = bounding_box(lat, lon, radius)
        assert len(lon_ranges) == 1
        lon_min, lon_max = lon_ranges[0]

        for bearing in range(0, 360, 10):
            # Destination point on the circle at this bearing.
            d = radius / 3959.0
            b = math.radians(bearing)
            lat1, lon1 = math.radians(lat), math.radians(lon)
            lat2 = math.asin(math.sin(lat1) * math.cos(d) + math.cos(lat1) * math.sin(d) * math.cos(b))
            lon2 = lon1 + math.atan2(
                math.sin(b) * math.sin(d) * math.cos(lat1),
                math.cos(d) - math.sin(lat1) * math.sin(lat2),
            )
            assert lat_min <= math.degrees(lat2) <= lat_max
            assert lon_min <= math.degrees(lon2) <= lon_max

    def test_latitude_delta_uses_margin(self):
        lat_min, lat_max, _ = bounding_box(10.0, 20.0, 69.0)
        assert lat_max - 10.0 == pytest.approx(BBOX_MARGIN)
        assert 10.0 - lat_min == pytest.approx(BBOX_MARGIN)

    def test_clamped_near_pole(self):
        lat_min, lat_max, lon_ranges = bounding_box(89.9, 0.0, 100.0)
        assert lat_max == 90.0
        assert lon_ranges == [(-180.0, 180.0)]

    def test_split_across_antimeridian(self):
        _, _, lon_ranges = bounding_box(52.0, 179.9, 20.0)
        assert len(lon_ranges) == 2
        assert lon_ranges[1][0] == -180.0


class TestZoneIndex:
    def test_chatham_scenario(self, provisioned: DatabaseManager):
        zones = ZoneIndex(provisioned).find_nearby(*CHATHAM, 50.0)

        assert [z.code for z in zones] == ["ANZ254", "ANZ237"]
        assert zones[0].distance_miles == pytest.approx(3.1, abs=0.05)
        assert zones[1].distance_miles == pytest.approx(41.0, abs=0.05)

    def test_results_never_exceed_radius(self, provisioned: DatabaseManager):
        for radius in (0.0, 1.0, 3.0, 10.0, 41.0, 60.0, 500.0):
            for zone in ZoneIndex(provisioned).find_nearby(*CHATHAM, radius):
                assert zone.distance_miles <= radius

    def test_empty_result_is_not_an_error(self, provisioned: DatabaseManager):
        assert ZoneIndex(provisioned).find_nearby(0.0, 0.0, 50.0) == []

    def test_negative_radius_rejected(self, provisioned: DatabaseManager):
        with pytest.raises(ValueError):
            ZoneIndex(provisioned).find_nearby(*CHATHAM, -1.0)

    def test_ties_keep_insertion_order(self, db_manager: DatabaseManager):
        index = _zone_table(db_manager, [
            ("ZZZ003", 41.0, -70.5),
            ("ZZZ001", 41.0, -69.5),
            ("ZZZ002", 41.0, -70.5),
        ])
        codes = [z.code for z in index.find_nearby(41.0, -70.0, 50.0)]
        # All three are equidistant from (41, -70) along the same parallel.
        assert codes == ["ZZZ003", "ZZZ001", "ZZZ002"]

    def test_matches_brute_force(self, db_manager: DatabaseManager):
        rng = random.Random(42)
        rows = [
            (f"R{i:04d}", rng.uniform(25.0, 50.0), rng.uniform(-125.0, -65.0))
            for i in range(400)
        ]
        index = _zone_table(db_manager, rows)

        for _ in range(25):
            lat, lon = rng.uniform(28.0, 47.0), rng.uniform(-120.0, -70.0)
            radius = rng.uniform(10.0, 300.0)
            found = index.find_nearby(lat, lon, radius)

            expected = {code for code, zlat, zlon in rows if haversine_miles(lat, lon, zlat, zlon) <= radius}
            assert {z.code for z in found} == expected
            distances = [z.distance_miles for z in found]
            assert distances == sorted(distances)

    def test_antimeridian_neighbors_found(self, db_manager: DatabaseManager):
        index = _zone_table(db_manager, [("PKZ900", 52.0, -179.95), ("PKZ901", 52.0, 179.95)])
        codes = {z.code for z in index.find_nearby(52.0, 179.99, 20.0)}
        assert codes == {"PKZ900", "PKZ901"}

    def test_find_by_code(self, provisioned: DatabaseManager):
        zone = ZoneIndex(provisioned).find_by_code("anz254")
        assert zone.code == "ANZ254"
        assert zone.distance_miles == 0.0

    def test_find_by_code_missing(self, provisioned: DatabaseManager):
        with pytest.raises(NotFoundError, match="ANZ000"):
            ZoneIndex(provisioned).find_by_code("ANZ000")

    def test_missing_table_is_a_lookup_error(self, db_manager: DatabaseManager):
        with pytest.raises(IndexQueryError):
            ZoneIndex(db_manager).find_nearby(*CHATHAM, 50.0)

    def test_unreadable_database_is_a_lookup_error(self, tmp_path):
        bad = tmp_path / "garbage.db"
        bad.write_bytes(b"this is not a sqlite database" * 100)
        manager = DatabaseManager(bad)
        with pytest.raises(IndexQueryError):
            ZoneIndex(manager).find_nearby(*CHATHAM, 50.0)


class TestStationIndex:
    def test_nearest_station_first(self, provisioned: DatabaseManager):
        stations = StationIndex(provisioned).find_nearby(*CHATHAM, 100.0)
        assert [s.id for s in stations] == ["8447435", "8443970"]
        assert stations[0].distance_miles < 1.0
        assert stations[0].state == "MA"

    def test_find_by_code(self, provisioned: DatabaseManager):
        station = StationIndex(provisioned).find_by_code("9414290")
        assert station.name == "San Francisco"
        assert station.distance_miles == 0.0

    def test_find_by_code_missing(self, provisioned: DatabaseManager):
        with pytest.raises(NotFoundError):
            StationIndex(provisioned).find_by_code("0000000")


class TestNearbyIndexBase:
    def test_subclass_without_row_mapping_cannot_be_built(self, db_manager: DatabaseManager):
        class Unmapped(_NearbyIndex):
            kind = "buoy"
            _table = "buoys"

        with pytest.raises(TypeError):
            Unmapped(db_manager)
