"""Provisioning pipeline — build the local geographic and location indices.

Two phases, each in a single transaction and each idempotent:

1. **zones index**: ``marine_zones`` and ``tide_stations``
2. **locations index**: ``zipcodes``

Progress contract (see :class:`ProvisioningRun`):

- ``next_status()`` returns the next human-readable status line, or
  ``None`` once the stream is closed. Closing happens after the last phase,
  whether it succeeded or failed.
- ``result`` is a future carrying the terminal outcome: ``None`` on
  success, a :class:`ProvisioningError` on failure. It is cancelled when
  the run is cancelled (the user quit mid-run); nothing from the phase in
  progress is committed then.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
from collections.abc import AsyncIterator, Callable, Iterable
from dataclasses import dataclass

from mariner.errors import ProvisioningCancelled, ProvisioningError
from mariner.etl.sources import ReferenceSources, Report
from mariner.persistence import schema
from mariner.persistence.db_manager import DatabaseManager
from mariner.persistence.errors import PersistenceError

logger = logging.getLogger(__name__)

# Status lines kept in flight before the oldest is dropped.
STATUS_QUEUE_SIZE = 64

_PROGRESS_EVERY = {
    schema.MARINE_ZONES: 100,
    schema.TIDE_STATIONS: 500,
    schema.ZIPCODES: 5000,
}


@dataclass(frozen=True)
class _TableBuild:
    table: str
    label: str
    ddl: str
    insert_sql: str
    rows: Callable[[ReferenceSources, Report], Iterable[tuple]]


@dataclass(frozen=True)
class _Phase:
    name: str
    tables: tuple[_TableBuild, ...]


def _zone_rows(sources: ReferenceSources, report: Report) -> Iterable[tuple]:
    for z in sources.zones(report):
        bbox = z.bbox or (None, None, None, None)
        yield (z.zone_code, z.zone_name, *bbox, z.center_lat, z.center_lon)


def _station_rows(sources: ReferenceSources, report: Report) -> Iterable[tuple]:
    for s in sources.stations(report):
        yield (s.id, s.name, s.state, s.latitude, s.longitude)


def _zipcode_rows(sources: ReferenceSources, report: Report) -> Iterable[tuple]:
    for z in sources.zipcodes(report):
        yield (z.zipcode, z.city, z.state, z.latitude, z.longitude)


PHASES: tuple[_Phase, ...] = (
    _Phase(
        name="zones index",
        tables=(
            _TableBuild(
                table=schema.MARINE_ZONES,
                label="marine zones",
                ddl=schema.MARINE_ZONES_DDL,
                insert_sql=(
                    "INSERT INTO marine_zones (zone_code, zone_name, bbox_min_lat, bbox_max_lat,"
                    " bbox_min_lon, bbox_max_lon, center_lat, center_lon)"
                    " VALUES (?, ?, ?, ?, ?, ?, ?, ?)"
                ),
                rows=_zone_rows,
            ),
            _TableBuild(
                table=schema.TIDE_STATIONS,
                label="tide stations",
                ddl=schema.TIDE_STATIONS_DDL,
                insert_sql=(
                    "INSERT OR IGNORE INTO tide_stations (id, name, state, latitude, longitude)"
                    " VALUES (?, ?, ?, ?, ?)"
                ),
                rows=_station_rows,
            ),
        ),
    ),
    _Phase(
        name="locations index",
        tables=(
            _TableBuild(
                table=schema.ZIPCODES,
                label="zipcodes",
                ddl=schema.ZIPCODES_DDL,
                insert_sql=(
                    "INSERT OR IGNORE INTO zipcodes (zipcode, city, state, latitude, longitude)"
                    " VALUES (?, ?, ?, ?, ?)"
                ),
                rows=_zipcode_rows,
            ),
        ),
    ),
)


class ProvisioningPipeline:
    """Ensures the reference tables exist before first use."""

    def __init__(self, manager: DatabaseManager, sources: ReferenceSources):
        self._manager = manager
        self._sources = sources
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Existence probe
    # ------------------------------------------------------------------

    def needs_provisioning(self) -> bool:
        """Cheap check: database file missing, or any reference table missing."""
        if not self._manager.db_path.exists():
            return True
        try:
            return any(not self._manager.table_exists(t) for t in schema.REFERENCE_TABLES)
        except (sqlite3.Error, PersistenceError) as exc:
            raise ProvisioningError(f"checking local index: {exc}") from exc

    # ------------------------------------------------------------------
    # Blocking run (worker thread)
    # ------------------------------------------------------------------

    def run_blocking(
        self, report: Report | None = None, cancel: threading.Event | None = None
    ) -> None:
        """Run every phase that still has missing tables.

        Safe to call repeatedly and concurrently: the probe is re-checked
        under the pipeline lock, so a provisioned store is left untouched.
        Setting *cancel* stops the run at the next status line or row and
        rolls back the phase in progress.
        """
        report = report or logger.info
        cancel = cancel or threading.Event()

        def checked_report(text: str) -> None:
            _check_cancelled(cancel)
            report(text)

        with self._lock:
            if not self.needs_provisioning():
                logger.debug("Local index already provisioned: %s", self._manager.db_path)
                return
            for phase in PHASES:
                self._run_phase(phase, checked_report, cancel)
        report(f"Local index ready at {self._manager.db_path}")

    def _run_phase(self, phase: _Phase, report: Report, cancel: threading.Event) -> None:
        _check_cancelled(cancel)
        missing = [t for t in phase.tables if not self._manager.table_exists(t.table)]
        if not missing:
            logger.debug("Phase %s already complete", phase.name)
            return

        report(f"Provisioning {phase.name}...")
        try:
            # Downloads happen before the transaction so the database lock
            # is only held while rows are written.
            fetched = [(build, list(build.rows(self._sources, report))) for build in missing]
            with self._manager.transaction() as conn:
                for build, rows in fetched:
                    self._build_table(conn, build, rows, report, cancel)
        except ProvisioningError:
            raise
        except Exception as exc:
            raise ProvisioningError(f"{phase.name} failed: {exc}") from exc
        logger.info("Phase %s committed", phase.name)

    def _build_table(
        self,
        conn: sqlite3.Connection,
        build: _TableBuild,
        rows: list[tuple],
        report: Report,
        cancel: threading.Event,
    ) -> None:
        report(f"{build.label.capitalize()} table not found, provisioning...")
        for stmt in schema.create_statements(build.ddl):
            conn.execute(stmt)

        every = _PROGRESS_EVERY.get(build.table, 1000)
        count = 0
        for row in rows:
            _check_cancelled(cancel)
            conn.execute(build.insert_sql, row)
            count += 1
            if count % every == 0:
                report(f"Inserted {count} {build.label}...")

        if count == 0:
            raise ProvisioningError(f"no {build.label} received from source")
        report(f"Successfully inserted {count} {build.label}")

    # ------------------------------------------------------------------
    # Async run
    # ------------------------------------------------------------------

    def start(self) -> ProvisioningRun:
        """Start provisioning on a daemon thread; must be called from the event loop.

        Quitting never waits for an in-flight download.
        """
        run = ProvisioningRun(asyncio.get_running_loop())
        thread = threading.Thread(
            target=self._work, args=(run,), name="mariner-provisioning", daemon=True
        )
        thread.start()
        return run

    def _work(self, run: ProvisioningRun) -> None:
        error: ProvisioningError | None = None
        try:
            self.run_blocking(run.report_threadsafe, run.cancel_event)
        except ProvisioningCancelled:
            logger.info("Provisioning cancelled")
        except ProvisioningError as exc:
            error = exc
        except Exception as exc:
            error = ProvisioningError(str(exc))
            error.__cause__ = exc

        if error is not None:
            logger.error("Provisioning failed: %s", error)
        run.finish_threadsafe(error)


def _check_cancelled(cancel: threading.Event) -> None:
    if cancel.is_set():
        raise ProvisioningCancelled("provisioning cancelled")


class ProvisioningRun:
    """Handle on one provisioning run: a status stream plus a result future."""

    def __init__(self, loop: asyncio.AbstractEventLoop, maxsize: int = STATUS_QUEUE_SIZE):
        self._loop = loop
        self._queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=maxsize + 1)
        self._maxsize = maxsize
        self._closing = False
        self._closed = False
        self.cancel_event = threading.Event()
        self.result: asyncio.Future[None] = loop.create_future()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        """Ask the worker to stop; the phase in progress is rolled back."""
        if self.result.done():
            return
        if not self.cancel_event.is_set():
            logger.info("Cancelling provisioning")
            self.cancel_event.set()
        self.close()

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def report_threadsafe(self, text: str) -> None:
        """Publish a status line from the worker thread. Never blocks."""
        logger.info(text)
        self._call_threadsafe(self._offer, text)

    def finish_threadsafe(self, error: ProvisioningError | None) -> None:
        """Close the stream and resolve :attr:`result` from the worker thread."""
        self._call_threadsafe(self._complete, error)

    def _call_threadsafe(self, callback: Callable[..., None], *args: object) -> None:
        try:
            self._loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            # The loop is gone: the app quit while the worker was finishing.
            logger.debug("Event loop closed; dropping %s", callback.__name__)

    def _offer(self, text: str) -> None:
        if self._closed:
            return
        if self._queue.qsize() >= self._maxsize:
            self._queue.get_nowait()
        self._queue.put_nowait(text)

    def _complete(self, error: ProvisioningError | None) -> None:
        self.close()
        if self.result.done():
            return
        if self.cancelled:
            self.result.cancel()
        elif error is not None:
            self.result.set_exception(error)
        else:
            self.result.set_result(None)

    def close(self) -> None:
        """Close the stream. Pending lines are still delivered before ``None``."""
        if self._closing:
            return
        self._closing = True
        # Let already scheduled _offer callbacks land before the sentinel.
        self._loop.call_soon(self._finish)

    def _finish(self) -> None:
        self._closed = True
        self._queue.put_nowait(None)

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    async def next_status(self) -> str | None:
        """Next status line, or ``None`` once the stream is closed (repeatably)."""
        item = await self._queue.get()
        if item is None:
            self._queue.put_nowait(None)
        return item

    async def statuses(self) -> AsyncIterator[str]:
        while (item := await self.next_status()) is not None:
            yield item

    async def wait(self) -> None:
        """Wait for the terminal outcome; raises the ProvisioningError on failure."""
        await self.result
