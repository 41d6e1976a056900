"""Tests for the saved-port repository."""

from __future__ import annotations

import pytest

from mariner.contracts.port import SavedPort
from mariner.errors import NotFoundError
from mariner.persistence.db_manager import DatabaseManager
from mariner.persistence.port_repo import SavedPortRepository


def _port(name: str = "Home", **overrides) -> SavedPort:
    fields = {
        "name": name,
        "city": "Chatham",
        "state": "MA",
        "zone_code": "ANZ254",
        "station_id": "8447435",
        "latitude": 41.6885,
        "longitude": -69.9511,
    }
    fields.update(overrides)
    return SavedPort(**fields)


class TestSavedPortRepository:
    def test_upsert_then_get(self, db_manager: DatabaseManager):
        repo = SavedPortRepository(db_manager)
        stored = repo.upsert(_port())

        assert stored.id is not None
        assert stored.created_at is not None
        assert repo.get("Home") == stored

    def test_upsert_same_name_overwrites(self, db_manager: DatabaseManager):
        repo = SavedPortRepository(db_manager)
        repo.upsert(_port())
        repo.upsert(_port(zone_code="ANZ237", station_id="8443970", city="Boston"))

        ports = repo.list_all()
        assert len(ports) == 1
        assert ports[0].zone_code == "ANZ237"
        assert ports[0].station_id == "8443970"
        assert ports[0].city == "Boston"

    def test_list_ordered_by_name(self, db_manager: DatabaseManager):
        repo = SavedPortRepository(db_manager)
        for name in ("Nantucket", "Chatham", "Provincetown"):
            repo.upsert(_port(name))

        assert [p.name for p in repo.list_all()] == ["Chatham", "Nantucket", "Provincetown"]

    def test_list_empty(self, db_manager: DatabaseManager):
        assert SavedPortRepository(db_manager).list_all() == []

    def test_delete(self, db_manager: DatabaseManager):
        repo = SavedPortRepository(db_manager)
        repo.upsert(_port("A"))
        repo.upsert(_port("B"))

        repo.delete("A")

        assert [p.name for p in repo.list_all()] == ["B"]

    def test_delete_missing_is_noop(self, db_manager: DatabaseManager):
        SavedPortRepository(db_manager).delete("nope")

    def test_get_missing(self, db_manager: DatabaseManager):
        with pytest.raises(NotFoundError, match="saved port"):
            SavedPortRepository(db_manager).get("nope")

    def test_schema_creation_keeps_rows(self, db_manager: DatabaseManager):
        SavedPortRepository(db_manager).upsert(_port())
        # A fresh repository re-runs CREATE TABLE IF NOT EXISTS.
        assert len(SavedPortRepository(db_manager).list_all()) == 1
