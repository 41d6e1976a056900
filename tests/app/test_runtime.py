"""End-to-end runs of the reducer loop against a provisioned local index."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable

from mariner.app import messages as msg
from mariner.app.dispatcher import Services
from mariner.app.runtime import Runtime
from mariner.app.startup import initial_model
from mariner.app.state import AppModel, StartupOptions
from mariner.config import Settings
from mariner.contracts.enums import AppState
from mariner.errors import FetchError
from mariner.etl.provisioning import ProvisioningPipeline
from mariner.persistence.db_manager import DatabaseManager
from mariner.persistence.geo_index import StationIndex, ZoneIndex
from mariner.persistence.location_index import LocationIndex
from mariner.persistence.port_repo import SavedPortRepository
from mariner.services.geocoder import LocalGeocoder
from mariner.services.port_service import PortService
from tests.app.fake_clients import (
    ALERTS,
    CONDITIONS,
    FORECAST,
    TIDES,
    FakeAlerts,
    FakeStationSearch,
    FakeTides,
    FakeWeather,
)
from tests.conftest import FakeSources


def _services(
    manager: DatabaseManager, alerts: FakeAlerts | None = None, sources: FakeSources | None = None
) -> Services:
    stations = StationIndex(manager)
    return Services(
        settings=Settings(db_path=manager.db_path),
        geocoder=LocalGeocoder(LocationIndex(manager)),
        weather=FakeWeather(result=(CONDITIONS, FORECAST)),
        tides=FakeTides(result=TIDES),
        alerts=alerts or FakeAlerts(result=ALERTS),
        station_search=FakeStationSearch(result=[]),
        zones=ZoneIndex(manager),
        stations=stations,
        ports=PortService(SavedPortRepository(manager), stations),
        pipeline=ProvisioningPipeline(manager, sources or FakeSources()),
    )


class GatedSources(FakeSources):
    """The zone download blocks until the test releases it."""

    def __init__(self):
        super().__init__()
        self.gate = threading.Event()

    def zones(self, report):
        report("Downloading zones...")
        self.gate.wait(5.0)
        return super().zones(report)


async def _wait_for(runtime: Runtime, predicate: Callable[[AppModel], bool], timeout: float = 5.0) -> None:
    async def poll():
        while not predicate(runtime.model):
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout)


def _type(runtime: Runtime, *keys: str) -> None:
    for key in keys:
        runtime.post(msg.KeyPressed(key=key))


class TestRuntime:
    async def test_search_select_display(self, provisioned: DatabaseManager):
        rendered: list[AppState] = []
        runtime = Runtime(_services(provisioned), render=lambda m: rendered.append(m.state))
        task = asyncio.ensure_future(runtime.run(AppModel()))

        _type(runtime, *"02633", "enter")
        await _wait_for(runtime, lambda m: m.state is AppState.ZONE_LIST and m.selected_station is not None)
        assert [z.code for z in runtime.model.zones] == ["ANZ254", "ANZ237"]

        _type(runtime, "enter")
        await _wait_for(runtime, lambda m: m.state is AppState.DISPLAY)
        assert runtime.model.weather == CONDITIONS
        assert runtime.model.tides == TIDES
        assert runtime.model.alerts == ALERTS

        _type(runtime, "q")
        final = await asyncio.wait_for(task, 5.0)
        assert final.quitting
        assert AppState.LOADING in rendered

    async def test_alert_failure_does_not_block_display(self, provisioned: DatabaseManager):
        runtime = Runtime(_services(provisioned, alerts=FakeAlerts(fail=FetchError("alerts down"))))
        task = asyncio.ensure_future(runtime.run(AppModel()))

        _type(runtime, *"02633", "enter")
        await _wait_for(runtime, lambda m: m.state is AppState.ZONE_LIST)
        _type(runtime, "enter")
        await _wait_for(runtime, lambda m: m.state is AppState.DISPLAY)

        assert runtime.model.weather == CONDITIONS
        assert runtime.model.alerts is None
        _type(runtime, "ctrl+c")
        await asyncio.wait_for(task, 5.0)

    async def test_first_run_provisions_then_opens_station(self, db_manager: DatabaseManager):
        services = _services(db_manager)
        options = StartupOptions(station="ANZ237", location="02633")
        model, commands = initial_model(options, services.pipeline.needs_provisioning())
        assert model.state is AppState.PROVISIONING

        runtime = Runtime(services)
        task = asyncio.ensure_future(runtime.run(model, commands))

        await _wait_for(runtime, lambda m: m.state is AppState.DISPLAY)
        assert runtime.model.selected_zone.code == "ANZ237"
        assert runtime.model.provisioning_status
        assert not services.pipeline.needs_provisioning()

        _type(runtime, "q")
        await asyncio.wait_for(task, 5.0)

    async def test_save_and_reopen_port(self, provisioned: DatabaseManager):
        runtime = Runtime(_services(provisioned))
        task = asyncio.ensure_future(runtime.run(AppModel()))

        _type(runtime, *"02633", "enter")
        await _wait_for(runtime, lambda m: m.state is AppState.ZONE_LIST)
        _type(runtime, "enter")
        await _wait_for(runtime, lambda m: m.state is AppState.DISPLAY)

        _type(runtime, "a", *"Home", "enter")
        await _wait_for(runtime, lambda m: m.notice == "Saved port Home")

        _type(runtime, "p")
        await _wait_for(runtime, lambda m: m.state is AppState.SAVED_LIST and len(m.saved_ports) == 1)
        _type(runtime, "enter")
        await _wait_for(runtime, lambda m: m.state is AppState.DISPLAY)
        assert runtime.model.selected_zone.code == "ANZ254"
        assert runtime.model.selected_station.id == "8447435"

        _type(runtime, "q")
        await asyncio.wait_for(task, 5.0)

    async def test_quit_during_provisioning_cancels_the_run(self, db_manager: DatabaseManager):
        sources = GatedSources()
        runtime = Runtime(_services(db_manager, sources=sources))
        model, commands = initial_model(StartupOptions(), needs_provisioning=True)
        task = asyncio.ensure_future(runtime.run(model, commands))

        await _wait_for(runtime, lambda m: "Downloading zones..." in m.provisioning_status)
        _type(runtime, "q")
        final = await asyncio.wait_for(task, 1.0)
        assert final.quitting

        run = runtime.dispatcher.provisioning
        assert run.cancelled
        sources.gate.set()

        async def finished():
            while not run.result.done():
                await asyncio.sleep(0.01)

        await asyncio.wait_for(finished(), 5.0)
        assert run.result.cancelled()
        assert not db_manager.table_exists("marine_zones")
