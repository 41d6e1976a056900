"""Command dispatcher — runs reducer intents as background asyncio tasks.

Every task performs one unit of I/O under a timeout and posts exactly one
message back, success or error. Blocking SQLite work runs in a worker
thread via ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TypeVar

from mariner.app import commands as cmd
from mariner.app import messages as msg
from mariner.config import Settings
from mariner.errors import EntityLookupError, FetchError, InputError, MarinerError
from mariner.etl.provisioning import ProvisioningPipeline, ProvisioningRun
from mariner.persistence.geo_index import StationIndex, ZoneIndex, rank_by_distance
from mariner.services.port_service import PortService
from mariner.services.protocols import (
    AlertClient,
    Geocoder,
    StationSearchClient,
    TideClient,
    WeatherClient,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
Post = Callable[[msg.Message], None]

# Tide predictions cover today plus the next two days.
TIDE_WINDOW_DAYS = 2


@dataclass
class Services:
    """Everything the dispatcher talks to, constructed once at startup."""

    settings: Settings
    geocoder: Geocoder
    weather: WeatherClient
    tides: TideClient
    alerts: AlertClient
    station_search: StationSearchClient
    zones: ZoneIndex
    stations: StationIndex
    ports: PortService
    pipeline: ProvisioningPipeline | None = None


class Dispatcher:
    def __init__(self, services: Services, post: Post):
        self._services = services
        self._post = post
        self._tasks: set[asyncio.Task] = set()
        self._provisioning: ProvisioningRun | None = None

    @property
    def pending(self) -> int:
        return len(self._tasks)

    @property
    def provisioning(self) -> ProvisioningRun | None:
        return self._provisioning

    def dispatch(self, command: cmd.Command) -> None:
        """Schedule *command*. Batches fan out; nothing is awaited here."""
        if isinstance(command, cmd.Batch):
            for member in command.commands:
                self.dispatch(member)
            return
        if isinstance(command, cmd.Quit):
            return

        handler = self._HANDLERS.get(type(command))
        if handler is None:
            logger.warning("No handler for command %r", command)
            return
        self._spawn(handler(self, command), name=type(command).__name__)

    async def shutdown(self) -> None:
        """Cancel every in-flight task and wait for them to finish.

        A provisioning run still in progress is cancelled too, so its worker
        stops before committing anything more.
        """
        if self._provisioning is not None:
            self._provisioning.cancel()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    async def drain(self) -> None:
        """Wait until no task is in flight (tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _spawn(self, coro: Awaitable[msg.Message], name: str) -> None:
        task = asyncio.ensure_future(self._run(coro, name))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, coro: Awaitable[msg.Message], name: str) -> None:
        try:
            message = await coro
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Command %s crashed", name)
            message = msg.FatalError(error=exc)
        self._post(message)

    @staticmethod
    async def _fetch(what: str, call: Awaitable[T], timeout: float) -> T:
        """Await a remote call; any failure or timeout becomes a FetchError."""
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise FetchError(f"{what} timed out after {timeout:.0f}s") from exc
        except FetchError:
            raise
        except Exception as exc:
            raise FetchError(f"{what} failed: {exc}") from exc

    @staticmethod
    async def _lookup(what: str, call: Awaitable[T], timeout: float) -> T:
        """Like :meth:`_fetch` for lookups; errors become EntityLookupError."""
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise EntityLookupError(f"{what} timed out after {timeout:.0f}s") from exc
        except (EntityLookupError, InputError):
            raise
        except Exception as exc:
            raise EntityLookupError(f"{what} failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------

    async def _start_provisioning(self, command: cmd.StartProvisioning) -> msg.Message:
        pipeline = self._services.pipeline
        if pipeline is None:
            return msg.ProvisionFinished()
        self._provisioning = pipeline.start()
        return await self._wait_provision_status(cmd.WaitProvisionStatus())

    async def _wait_provision_status(self, command: cmd.WaitProvisionStatus) -> msg.Message:
        run = self._provisioning
        if run is None:
            return msg.ProvisionFinished()
        text = await run.next_status()
        if text is not None:
            return msg.ProvisionStatus(text=text)
        try:
            await run.wait()
        except MarinerError as exc:
            return msg.ProvisionFinished(error=exc)
        return msg.ProvisionFinished()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _geocode(self, command: cmd.Geocode) -> msg.Message:
        try:
            location = await self._lookup(
                f"geocoding {command.query!r}",
                self._services.geocoder.geocode(command.query),
                self._services.settings.geocode_timeout,
            )
        except MarinerError as exc:
            return msg.GeocodeCompleted(session=command.session, query=command.query, error=exc)
        return msg.GeocodeCompleted(session=command.session, query=command.query, location=location)

    async def _find_zones(self, command: cmd.FindNearbyZones) -> msg.Message:
        settings = self._services.settings
        loc = command.location
        try:
            zones = await self._lookup(
                "zone search",
                asyncio.to_thread(
                    self._services.zones.find_nearby,
                    loc.latitude, loc.longitude, settings.zone_radius_miles,
                ),
                settings.lookup_timeout,
            )
        except MarinerError as exc:
            return msg.ZonesFound(session=command.session, error=exc)
        return msg.ZonesFound(session=command.session, zones=tuple(zones))

    async def _load_zone(self, command: cmd.LoadZoneByCode) -> msg.Message:
        try:
            zone = await self._lookup(
                f"zone {command.code}",
                asyncio.to_thread(self._services.zones.find_by_code, command.code),
                self._services.settings.lookup_timeout,
            )
        except MarinerError as exc:
            return msg.ZoneLoaded(session=command.session, error=exc)
        return msg.ZoneLoaded(session=command.session, zone=zone)

    async def _find_stations(self, command: cmd.FindNearbyStations) -> msg.Message:
        settings = self._services.settings
        loc = command.location
        try:
            stations = await self._lookup(
                "station search",
                asyncio.to_thread(
                    self._services.stations.find_nearby,
                    loc.latitude, loc.longitude, settings.station_radius_miles,
                ),
                settings.lookup_timeout,
            )
        except MarinerError as exc:
            return msg.StationsFound(session=command.session, error=exc)
        return msg.StationsFound(session=command.session, stations=tuple(stations))

    async def _search_stations(self, command: cmd.SearchStations) -> msg.Message:
        try:
            stations = await self._fetch(
                f"station search for {command.query!r}",
                self._services.station_search.search_by_location(command.query),
                self._services.settings.lookup_timeout,
            )
        except MarinerError as exc:
            return msg.StationsFound(session=command.session, error=exc, remote=True)
        if command.location is not None:
            stations = rank_by_distance(
                stations, command.location.latitude, command.location.longitude
            )
        return msg.StationsFound(session=command.session, stations=tuple(stations), remote=True)

    # ------------------------------------------------------------------
    # Fetches
    # ------------------------------------------------------------------

    async def _fetch_weather(self, command: cmd.FetchWeather) -> msg.Message:
        try:
            conditions, forecast = await self._fetch(
                f"weather for {command.zone_code}",
                self._services.weather.get_marine_forecast(command.zone_code),
                self._services.settings.weather_timeout,
            )
        except FetchError as exc:
            return msg.WeatherFetched(session=command.session, error=exc)
        return msg.WeatherFetched(session=command.session, conditions=conditions, forecast=forecast)

    async def _fetch_tides(self, command: cmd.FetchTides) -> msg.Message:
        start = datetime.now()
        end = start + timedelta(days=TIDE_WINDOW_DAYS)
        try:
            tides = await self._fetch(
                f"tides for station {command.station_id}",
                self._services.tides.get_tide_predictions(command.station_id, start, end),
                self._services.settings.tide_timeout,
            )
        except FetchError as exc:
            return msg.TidesFetched(session=command.session, error=exc)
        return msg.TidesFetched(session=command.session, tides=tides)

    async def _fetch_alerts(self, command: cmd.FetchAlerts) -> msg.Message:
        try:
            alerts = await self._fetch(
                f"alerts for {command.zone_code}",
                self._services.alerts.get_active_alerts(command.zone_code),
                self._services.settings.alert_timeout,
            )
        except FetchError as exc:
            return msg.AlertsFetched(session=command.session, error=exc)
        return msg.AlertsFetched(session=command.session, alerts=alerts)

    # ------------------------------------------------------------------
    # Saved ports
    # ------------------------------------------------------------------

    async def _load_saved_ports(self, command: cmd.LoadSavedPorts) -> msg.Message:
        try:
            ports = await asyncio.to_thread(self._services.ports.list_ports)
        except Exception as exc:
            logger.warning("Listing saved ports failed: %s", exc)
            return msg.SavedPortsLoaded(error=exc)
        return msg.SavedPortsLoaded(ports=tuple(ports))

    async def _load_port(self, command: cmd.LoadPort) -> msg.Message:
        try:
            port = await self._lookup(
                f"saved port {command.name!r}",
                asyncio.to_thread(self._services.ports.get_port, command.name),
                self._services.settings.lookup_timeout,
            )
        except MarinerError as exc:
            return msg.PortLoaded(session=command.session, error=exc)
        return msg.PortLoaded(session=command.session, port=port)

    async def _save_port(self, command: cmd.SavePort) -> msg.Message:
        try:
            port = await asyncio.to_thread(
                self._services.ports.save_port,
                command.name, command.query, command.location, command.zone, command.station,
            )
        except Exception as exc:
            logger.warning("Saving port %r failed: %s", command.name, exc)
            return msg.PortSaved(name=command.name, error=exc)
        return msg.PortSaved(name=command.name, port=port)

    async def _delete_port(self, command: cmd.DeletePort) -> msg.Message:
        try:
            await asyncio.to_thread(self._services.ports.delete_port, command.name)
        except Exception as exc:
            logger.warning("Deleting port %r failed: %s", command.name, exc)
            return msg.PortDeleted(name=command.name, error=exc)
        return msg.PortDeleted(name=command.name)

    _HANDLERS: dict[type, Callable] = {
        cmd.StartProvisioning: _start_provisioning,
        cmd.WaitProvisionStatus: _wait_provision_status,
        cmd.Geocode: _geocode,
        cmd.FindNearbyZones: _find_zones,
        cmd.LoadZoneByCode: _load_zone,
        cmd.FindNearbyStations: _find_stations,
        cmd.SearchStations: _search_stations,
        cmd.FetchWeather: _fetch_weather,
        cmd.FetchTides: _fetch_tides,
        cmd.FetchAlerts: _fetch_alerts,
        cmd.LoadSavedPorts: _load_saved_ports,
        cmd.LoadPort: _load_port,
        cmd.SavePort: _save_port,
        cmd.DeletePort: _delete_port,
    }
