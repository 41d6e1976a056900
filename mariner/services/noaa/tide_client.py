"""NOAA CO-OPS tide predictions client."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx

from mariner.contracts.enums import TideType
from mariner.contracts.tide import TideData, TideEvent

logger = logging.getLogger(__name__)

BASE_URL = "https://api.tidesandcurrents.noaa.gov/api/prod/datagetter"


class TideClient:
    """Async HTTP client for high/low tide predictions (feet, MLLW)."""

    def __init__(self, http_client: httpx.AsyncClient | None = None):
        self._client = http_client or httpx.AsyncClient(timeout=30.0)

    async def get_tide_predictions(
        self, station_id: str, start: datetime, end: datetime
    ) -> TideData:
        resp = await self._client.get(
            BASE_URL,
            params={
                "begin_date": start.strftime("%Y%m%d"),
                "end_date": end.strftime("%Y%m%d"),
                "station": station_id,
                "product": "predictions",
                "datum": "MLLW",
                "time_zone": "lst_ldt",
                "interval": "hilo",
                "units": "english",
                "format": "json",
                "application": "Mariner",
            },
        )
        resp.raise_for_status()
        return parse_predictions(resp.json(), station_id)


def parse_predictions(data: dict, station_id: str) -> TideData:
    """Parse a CO-OPS ``predictions`` payload. Invalid entries are skipped."""
    if "error" in data:
        message = data["error"].get("message", "unknown error") if isinstance(data["error"], dict) else data["error"]
        raise ValueError(f"CO-OPS error for station {station_id}: {message}")

    events: list[TideEvent] = []
    for pred in data.get("predictions", []):
        try:
            events.append(
                TideEvent(
                    time=datetime.strptime(pred["t"], "%Y-%m-%d %H:%M"),
                    type=TideType.HIGH if pred.get("type") == "H" else TideType.LOW,
                    height_ft=float(pred["v"]),
                )
            )
        except (KeyError, TypeError, ValueError):
            logger.debug("Skipping invalid prediction %r", pred)

    events.sort(key=lambda e: e.time)
    return TideData(
        station_id=station_id,
        station_name=data.get("metadata", {}).get("name", ""),
        events=tuple(events),
        updated_at=datetime.now(tz=timezone.utc),
    )
