"""Runtime settings, read from the environment (and an optional ``.env`` file).

All variables are prefixed with ``MARINER_``:

- ``MARINER_DATA_DIR``: directory holding the local database (default ``data``)
- ``MARINER_DB_PATH``: explicit database path (overrides the data dir)
- ``MARINER_ZONE_RADIUS_MI`` / ``MARINER_STATION_RADIUS_MI``: nearby search radii
- ``MARINER_USER_AGENT``: User-Agent sent to api.weather.gov (required by NWS)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

DEFAULT_DB_FILENAME = "marine-terminal.db"


@dataclass(frozen=True)
class Settings:
    db_path: Path
    zone_radius_miles: float = 50.0
    station_radius_miles: float = 100.0
    save_station_radius_miles: float = 50.0

    # Per-command timeouts (seconds)
    geocode_timeout: float = 10.0
    weather_timeout: float = 30.0
    alert_timeout: float = 30.0
    tide_timeout: float = 15.0
    lookup_timeout: float = 15.0

    user_agent: str = "(mariner, mariner@example.com)"
    zones_shapefile_url: str = "https://www.weather.gov/source/gis/Shapefiles/WSOM/mz18mr25.zip"
    stations_api_url: str = "https://api.tidesandcurrents.noaa.gov/mdapi/prod/webapi"
    zipcodes_csv_url: str = (
        "https://raw.githubusercontent.com/midwire/free_zipcode_data/develop/all_us_zipcodes.csv"
    )

    @property
    def data_dir(self) -> Path:
        return self.db_path.parent


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def load_settings(db_path: str | Path | None = None) -> Settings:
    """Build :class:`Settings` from the environment.

    An explicit *db_path* (from the CLI) wins over ``MARINER_DB_PATH``.
    """
    load_dotenv(find_dotenv(usecwd=True))

    if db_path is None:
        db_path = os.environ.get("MARINER_DB_PATH")
    if db_path is None:
        data_dir = Path(os.environ.get("MARINER_DATA_DIR", "data"))
        db_path = data_dir / DEFAULT_DB_FILENAME

    return Settings(
        db_path=Path(db_path),
        zone_radius_miles=_float_env("MARINER_ZONE_RADIUS_MI", 50.0),
        station_radius_miles=_float_env("MARINER_STATION_RADIUS_MI", 100.0),
        user_agent=os.environ.get("MARINER_USER_AGENT", Settings.user_agent),
    )
