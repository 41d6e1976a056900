"""Zip code and city/state lookups on the local ``zipcodes`` table → Location."""

from __future__ import annotations

import sqlite3

from mariner.contracts.geo import Location
from mariner.errors import IndexQueryError, NotFoundError
from mariner.persistence.db_manager import DatabaseManager
from mariner.persistence.errors import PersistenceError


class LocationIndex:
    """Read-only location lookups backing the local geocoder."""

    def __init__(self, manager: DatabaseManager):
        self._manager = manager

    def by_zipcode(self, zipcode: str) -> Location:
        row = self._fetch_one(
            "SELECT zipcode, city, state, latitude, longitude FROM zipcodes WHERE zipcode = ?",
            (zipcode,),
        )
        if row is None:
            raise NotFoundError("zipcode", zipcode)
        return _to_location(row)

    def by_city_state(self, city: str, state: str) -> Location:
        """First matching zip code (lowest) for a city/state pair, case-insensitive."""
        row = self._fetch_one(
            """
            SELECT zipcode, city, state, latitude, longitude
            FROM zipcodes
            WHERE city = ? COLLATE NOCASE AND state = ? COLLATE NOCASE
            ORDER BY zipcode
            LIMIT 1
            """,
            (city, state),
        )
        if row is None:
            raise NotFoundError("location", f"{city}, {state}")
        return _to_location(row)

    def _fetch_one(self, sql: str, params: tuple) -> sqlite3.Row | None:
        try:
            with self._manager.connection() as conn:
                return conn.execute(sql, params).fetchone()
        except (sqlite3.Error, PersistenceError) as exc:
            raise IndexQueryError(f"querying zipcodes: {exc}") from exc


def _to_location(row: sqlite3.Row) -> Location:
    return Location(
        latitude=row["latitude"],
        longitude=row["longitude"],
        display_name=f"{row['city']}, {row['state']} {row['zipcode']}",
    )
