"""Saved-port repository on the local database.

``name`` uniqueness is enforced by the table's UNIQUE constraint: saving a
port whose name already exists overwrites every field of the stored row.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone

from mariner.contracts.port import SavedPort
from mariner.errors import NotFoundError
from mariner.persistence.db_manager import DatabaseManager
from mariner.persistence.schema import SAVED_PORTS_DDL, create_statements

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, name, state, city, zipcode, zone_code, station_id, latitude, longitude, created_at"
)


class SavedPortRepository:
    """CRUD for ``saved_ports``."""

    def __init__(self, manager: DatabaseManager):
        self._manager = manager
        self._schema_ready = False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def ensure_schema(self) -> None:
        """Create the table if missing. Never drops existing rows."""
        if self._schema_ready:
            return
        with self._manager.connection() as conn:
            for stmt in create_statements(SAVED_PORTS_DDL):
                conn.execute(stmt)
        self._schema_ready = True

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def list_all(self) -> list[SavedPort]:
        """Every saved port, ordered by name."""
        self.ensure_schema()
        with self._manager.connection() as conn:
            rows = conn.execute(f"SELECT {_COLUMNS} FROM saved_ports ORDER BY name").fetchall()
        return [_to_port(r) for r in rows]

    def get(self, name: str) -> SavedPort:
        """Fetch a single port by name. Raises :class:`NotFoundError` if missing."""
        self.ensure_schema()
        with self._manager.connection() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM saved_ports WHERE name = ?", (name,)
            ).fetchone()
        if row is None:
            raise NotFoundError("saved port", name)
        return _to_port(row)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def upsert(self, port: SavedPort) -> SavedPort:
        """Insert, or update every field of the row with the same name.

        Returns the stored port (with ``id`` and ``created_at`` filled in).
        """
        self.ensure_schema()
        created_at = port.created_at or datetime.now(tz=timezone.utc)
        with self._manager.connection() as conn:
            conn.execute(
                """
                INSERT INTO saved_ports
                    (name, state, city, zipcode, zone_code, station_id,
                     latitude, longitude, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET
                    state = excluded.state,
                    city = excluded.city,
                    zipcode = excluded.zipcode,
                    zone_code = excluded.zone_code,
                    station_id = excluded.station_id,
                    latitude = excluded.latitude,
                    longitude = excluded.longitude,
                    created_at = excluded.created_at
                """,
                (
                    port.name,
                    port.state,
                    port.city,
                    port.zipcode,
                    port.zone_code,
                    port.station_id,
                    port.latitude,
                    port.longitude,
                    created_at.isoformat(),
                ),
            )
        logger.info("Saved port %r (zone %s, station %s)", port.name, port.zone_code, port.station_id)
        return self.get(port.name)

    def delete(self, name: str) -> None:
        """Delete a port by name. Deleting a missing name is a no-op."""
        self.ensure_schema()
        with self._manager.connection() as conn:
            conn.execute("DELETE FROM saved_ports WHERE name = ?", (name,))
        logger.info("Deleted port %r", name)


def _to_port(row: sqlite3.Row) -> SavedPort:
    return SavedPort(
        id=row["id"],
        name=row["name"],
        state=row["state"] or "",
        city=row["city"] or "",
        zipcode=row["zipcode"] or "",
        zone_code=row["zone_code"],
        station_id=row["station_id"] or "",
        latitude=row["latitude"],
        longitude=row["longitude"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )
