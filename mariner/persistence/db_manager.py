"""Local SQLite database manager: one lazily opened, process-wide handle."""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from mariner.persistence.errors import DatabaseNotReadyError

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns the single SQLite connection shared by every component.

    - Constructed once at startup and passed explicitly to the geo index,
      location index, saved-port repository and provisioning pipeline.
    - The connection is opened lazily on first use; concurrent first
      accesses block on the same lock instead of racing.
    - Opened in autocommit mode (``isolation_level=None``): single
      statements commit immediately, multi-statement work goes through
      :meth:`transaction`.
    - Every access is serialized by the lock, so callers running in worker
      threads (``asyncio.to_thread``) never interleave statements.
    """

    def __init__(self, db_path: Path):
        self._db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def _open(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(
                str(self._db_path),
                isolation_level=None,
                check_same_thread=False,
            )
        except (OSError, sqlite3.Error) as exc:
            raise DatabaseNotReadyError(f"Cannot open database {self._db_path}: {exc}") from exc

        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.execute("PRAGMA cache_size=10000")
        except sqlite3.Error as exc:
            conn.close()
            raise DatabaseNotReadyError(f"Cannot use database {self._db_path}: {exc}") from exc
        logger.info("Opened database %s", self._db_path)
        self._conn = conn
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Borrow the shared connection for the duration of the block."""
        with self._lock:
            yield self._open()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the block inside ``BEGIN`` / ``COMMIT``; roll back on any error.

        DDL executed inside the block is transactional too, so tables created
        here only become visible together with their rows.
        """
        with self._lock:
            conn = self._open()
            conn.execute("BEGIN")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def table_exists(self, name: str) -> bool:
        with self.connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM sqlite_master WHERE type='table' AND name = ?", (name,)
            ).fetchone()
        return row is not None

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.debug("Closed database %s", self._db_path)
