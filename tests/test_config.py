"""Tests for environment-driven settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from mariner.config import DEFAULT_DB_FILENAME, load_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path: Path):
    for name in (
        "MARINER_DB_PATH",
        "MARINER_DATA_DIR",
        "MARINER_ZONE_RADIUS_MI",
        "MARINER_STATION_RADIUS_MI",
        "MARINER_USER_AGENT",
    ):
        monkeypatch.delenv(name, raising=False)
    # Keep load_dotenv away from any developer .env file.
    monkeypatch.chdir(tmp_path)


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings()
        assert settings.db_path == Path("data") / DEFAULT_DB_FILENAME
        assert settings.zone_radius_miles == 50.0
        assert settings.station_radius_miles == 100.0
        assert settings.geocode_timeout == 10.0
        assert settings.weather_timeout == 30.0
        assert settings.tide_timeout == 15.0

    def test_explicit_path_wins(self, monkeypatch):
        monkeypatch.setenv("MARINER_DB_PATH", "/env/marine.db")
        assert load_settings("/cli/marine.db").db_path == Path("/cli/marine.db")

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("MARINER_DATA_DIR", "/var/mariner")
        monkeypatch.setenv("MARINER_ZONE_RADIUS_MI", "25")
        monkeypatch.setenv("MARINER_USER_AGENT", "(test, test@example.com)")
        settings = load_settings()
        assert settings.data_dir == Path("/var/mariner")
        assert settings.zone_radius_miles == 25.0
        assert settings.user_agent == "(test, test@example.com)"

    def test_dotenv_file(self, tmp_path: Path):
        (tmp_path / ".env").write_text("MARINER_STATION_RADIUS_MI=75\n")
        assert load_settings().station_radius_miles == 75.0

    def test_bad_number(self, monkeypatch):
        monkeypatch.setenv("MARINER_ZONE_RADIUS_MI", "far")
        with pytest.raises(ValueError, match="MARINER_ZONE_RADIUS_MI"):
            load_settings()
