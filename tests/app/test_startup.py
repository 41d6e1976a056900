"""Tests for command-line startup policy."""

from __future__ import annotations

from pathlib import Path

import pytest

from mariner.app import commands as cmd
from mariner.app.startup import initial_model, parse_options, startup
from mariner.app.state import StartupOptions
from mariner.contracts.enums import AppState
from mariner.errors import InputError
from mariner.etl.provisioning import ProvisioningPipeline
from mariner.persistence.db_manager import DatabaseManager
from tests.conftest import FakeSources


class TestParseOptions:
    def test_station_requires_location(self):
        with pytest.raises(InputError, match="--station requires --location"):
            parse_options(station="ANZ254")

    def test_normalizes(self):
        opts = parse_options(port="  Home ", station="anz254", location=" 02633 ")
        assert opts == StartupOptions(port="Home", station="ANZ254", location="02633")

    def test_blank_values_are_absent(self):
        assert parse_options(port="", station=" ", location="") == StartupOptions()


class TestInitialModel:
    def test_provisioning_comes_first(self):
        model, commands = initial_model(StartupOptions(port="Home"), needs_provisioning=True)
        assert model.state is AppState.PROVISIONING
        assert commands == [cmd.StartProvisioning()]

    def test_port_wins_over_station(self):
        opts = StartupOptions(port="Home", station="ANZ254", location="02633")
        model, commands = initial_model(opts, needs_provisioning=False)
        assert model.state is AppState.LOADING
        assert commands == [cmd.LoadPort(session=model.session, name="Home")]

    def test_station_and_location_load_zone_directly(self):
        opts = StartupOptions(station="ANZ254", location="02633")
        model, commands = initial_model(opts, needs_provisioning=False)
        assert model.state is AppState.LOADING
        assert model.direct_zone == "ANZ254"
        assert model.query == "02633"
        assert commands == [cmd.Geocode(session=model.session, query="02633")]

    def test_location_alone_is_a_search(self):
        model, commands = initial_model(StartupOptions(location="Chatham, MA"), needs_provisioning=False)
        assert model.direct_zone is None
        assert commands == [cmd.Geocode(session=model.session, query="Chatham, MA")]

    def test_default_is_saved_list(self):
        model, commands = initial_model(StartupOptions(), needs_provisioning=False)
        assert model.state is AppState.SAVED_LIST
        assert commands == [cmd.LoadSavedPorts()]


class TestStartup:
    def test_missing_database_provisions(self, db_manager: DatabaseManager):
        model, commands = startup(StartupOptions(), ProvisioningPipeline(db_manager, FakeSources()))
        assert model.state is AppState.PROVISIONING
        assert commands == [cmd.StartProvisioning()]

    def test_provisioned_database_opens_target(self, provisioned: DatabaseManager):
        model, commands = startup(
            StartupOptions(location="02633"), ProvisioningPipeline(provisioned, FakeSources())
        )
        assert model.state is AppState.LOADING
        assert commands == [cmd.Geocode(session=model.session, query="02633")]

    def test_corrupt_database_starts_in_error_view(self, tmp_path: Path):
        db_path = tmp_path / "marine.db"
        db_path.write_bytes(b"not a sqlite database " * 150)
        manager = DatabaseManager(db_path)
        try:
            model, commands = startup(StartupOptions(), ProvisioningPipeline(manager, FakeSources()))
        finally:
            manager.close()

        assert model.state is AppState.ERROR
        assert model.error.startswith("Provisioning failed:")
        assert commands == []
