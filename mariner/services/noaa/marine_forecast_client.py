"""NWS marine zone forecast client (plain-text products on tgftp)."""

from __future__ import annotations

import re
from datetime import datetime, timezone

import httpx

from mariner.contracts.weather import (
    ForecastPeriod,
    MarineConditions,
    SeaState,
    ThreeDayForecast,
    WaveComponent,
    WindData,
)

BASE_URL = "https://tgftp.nws.noaa.gov/data/forecasts/marine"

_WIND_RE = re.compile(r"\b([NESW]{1,3})\s+(?:(?i:winds?)\s+)?(\d+)(?:\s+(?i:to)\s+(\d+))?\s*(?i:kt)\b")
_GUST_RE = re.compile(r"gusts?\s+(?:up\s+to\s+)?(\d+)\s*kt", re.IGNORECASE)
_SEAS_RE = re.compile(r"(?:seas|waves)\s+(\d+)(?:\s+to\s+(\d+))?\s*ft", re.IGNORECASE)
_WAVE_RE = re.compile(r"\b([NESW]{1,3})\s+(\d+)\s*(?i:ft\s+at)\s+(\d+)\s+(?i:seconds?)")

# Period headers that are really headlines, not forecast periods.
_HEADLINE_WORDS = ("ADVISORY", "WARNING", "WATCH")


class MarineForecastClient:
    """Async HTTP client for NWS coastal / offshore zone forecasts."""

    def __init__(self, http_client: httpx.AsyncClient | None = None, user_agent: str = "mariner"):
        self._client = http_client or httpx.AsyncClient(
            timeout=30.0, headers={"User-Agent": user_agent}
        )

    async def get_marine_forecast(self, zone_code: str) -> tuple[MarineConditions, ThreeDayForecast]:
        """Fetch and parse the text forecast for a zone (e.g. ``ANZ254``)."""
        if not zone_code:
            raise ValueError("marine zone is required")
        resp = await self._client.get(zone_forecast_url(zone_code))
        resp.raise_for_status()
        return parse_marine_text_product(resp.text, zone_code.upper())


def zone_forecast_url(zone_code: str) -> str:
    """``ANZ254`` -> ``.../coastal/an/anz254.txt``; non AN/GM zones are offshore."""
    zone = zone_code.upper()
    kind = "coastal" if zone.startswith(("AN", "GM")) else "offshore"
    return f"{BASE_URL}/{kind}/{zone[:2].lower()}/{zone.lower()}.txt"


def parse_marine_text_product(
    text: str, zone_code: str
) -> tuple[MarineConditions, ThreeDayForecast]:
    """Split the product into ``.PERIOD...text`` blocks and parse each one."""
    periods: list[tuple[str, str]] = []
    for block in text.split("\n."):
        block = block.strip()
        name, sep, body = block.partition("...")
        if not sep:
            continue
        name, body = name.strip(), " ".join(body.split())
        if not name or name.startswith("."):
            continue
        if any(word in name.upper() for word in _HEADLINE_WORDS):
            continue
        periods.append((name, body))

    if not periods:
        raise ValueError(f"no forecast periods found in text product for {zone_code}")

    now = datetime.now(tz=timezone.utc)
    first_text = periods[0][1]
    conditions = MarineConditions(
        location=zone_code,
        summary=first_text,
        wind=parse_wind(first_text),
        seas=parse_seas(first_text),
        updated_at=now,
    )
    forecast = ThreeDayForecast(
        periods=tuple(
            ForecastPeriod(name=name, wind=parse_wind(body), seas=parse_seas(body), raw_text=body)
            for name, body in periods
        ),
        updated_at=now,
    )
    return conditions, forecast


def parse_wind(text: str) -> WindData:
    match = _WIND_RE.search(text)
    if match is None:
        return WindData()
    speed_min = float(match.group(2))
    speed_max = float(match.group(3)) if match.group(3) else speed_min
    gust = _GUST_RE.search(text)
    return WindData(
        direction=match.group(1).upper(),
        speed_min_kt=speed_min,
        speed_max_kt=speed_max,
        gust_kt=float(gust.group(1)) if gust else None,
        raw_text=match.group(0),
    )


def parse_seas(text: str) -> SeaState:
    components = tuple(
        WaveComponent(direction=m.group(1).upper(), height_ft=float(m.group(2)), period_s=int(m.group(3)))
        for m in _WAVE_RE.finditer(text)
    )
    match = _SEAS_RE.search(text)
    if match is None:
        return SeaState(components=components)
    height_min = float(match.group(1))
    height_max = float(match.group(2)) if match.group(2) else height_min
    return SeaState(
        height_min_ft=height_min,
        height_max_ft=height_max,
        components=components,
        raw_text=match.group(0),
    )
