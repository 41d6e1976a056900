"""CLI entry point.

Usage:
    mariner
    mariner --port "Home"
    mariner --station ANZ254 --location 02633
    mariner --db /tmp/marine.db -v
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import curses
import logging
from pathlib import Path
from typing import Any

import httpx

from mariner.app.dispatcher import Services
from mariner.app.runtime import Runtime
from mariner.app.startup import parse_options, startup
from mariner.app.state import StartupOptions
from mariner.config import Settings, load_settings
from mariner.errors import InputError
from mariner.etl.provisioning import ProvisioningPipeline
from mariner.etl.sources import NoaaReferenceSources
from mariner.persistence.db_manager import DatabaseManager
from mariner.persistence.geo_index import StationIndex, ZoneIndex
from mariner.persistence.location_index import LocationIndex
from mariner.persistence.port_repo import SavedPortRepository
from mariner.services.geocoder import LocalGeocoder
from mariner.services.noaa.alert_client import AlertClient
from mariner.services.noaa.marine_forecast_client import MarineForecastClient
from mariner.services.noaa.station_search import StationSearchClient
from mariner.services.noaa.tide_client import TideClient
from mariner.services.port_service import PortService
from mariner.tui import Screen

logger = logging.getLogger(__name__)

LOG_FILENAME = "mariner.log"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mariner", description="NOAA marine weather, tides and alerts in the terminal"
    )
    parser.add_argument("--port", help="Open a saved port by name")
    parser.add_argument("--station", help="Marine zone code to load directly (e.g. ANZ254)")
    parser.add_argument("--location", help="Zip code or \"City, ST\"")
    parser.add_argument("--db", type=Path, help="Local database path")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def build_services(
    settings: Settings, manager: DatabaseManager, http_client: httpx.AsyncClient
) -> Services:
    stations = StationIndex(manager)
    ports = PortService(
        SavedPortRepository(manager), stations, settings.save_station_radius_miles
    )
    return Services(
        settings=settings,
        geocoder=LocalGeocoder(LocationIndex(manager)),
        weather=MarineForecastClient(http_client),
        tides=TideClient(http_client),
        alerts=AlertClient(http_client),
        station_search=StationSearchClient(http_client),
        zones=ZoneIndex(manager),
        stations=stations,
        ports=ports,
        pipeline=ProvisioningPipeline(manager, NoaaReferenceSources(settings)),
    )


async def run_app(stdscr: Any, settings: Settings, options: StartupOptions) -> None:
    screen = Screen(stdscr)
    screen.setup()

    manager = DatabaseManager(settings.db_path)
    async with httpx.AsyncClient(
        timeout=30.0,
        follow_redirects=True,
        headers={"User-Agent": settings.user_agent},
    ) as http_client:
        services = build_services(settings, manager, http_client)
        model, commands = startup(options, services.pipeline)
        width, height = screen.size()
        model = model.model_copy(update={"width": width, "height": height})

        runtime = Runtime(services, render=screen.paint)
        reader = asyncio.ensure_future(screen.read_keys(runtime.post))
        try:
            final = await runtime.run(model, commands)
        finally:
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader
            manager.close()
    logger.info("Exiting in state %s", final.state.value)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        options = parse_options(args.port, args.station, args.location)
    except InputError as exc:
        parser.error(str(exc))

    settings = load_settings(args.db)
    settings.data_dir.mkdir(parents=True, exist_ok=True)

    # curses owns the terminal, so logs go to a file.
    logging.basicConfig(
        filename=settings.data_dir / LOG_FILENAME,
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting with database %s", settings.db_path)

    curses.wrapper(lambda stdscr: asyncio.run(run_app(stdscr, settings, options)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
