"""NOAA CO-OPS metadata API station search."""

from __future__ import annotations

import logging
import time

import httpx

from mariner.contracts.geo import StationCandidate

logger = logging.getLogger(__name__)

BASE_URL = "https://api.tidesandcurrents.noaa.gov/mdapi/prod/webapi"

# Station metadata changes rarely.
CACHE_TTL_S = 24 * 3600


class StationSearchClient:
    """Searches the full tide-prediction station list by state code or name.

    The station list is downloaded once and cached in memory.
    """

    def __init__(self, http_client: httpx.AsyncClient | None = None):
        self._client = http_client or httpx.AsyncClient(timeout=30.0)
        self._stations: list[StationCandidate] | None = None
        self._fetched_at = 0.0

    async def search_by_location(self, query: str) -> list[StationCandidate]:
        query = query.strip().lower()
        if not query:
            raise ValueError("search query cannot be empty")

        stations = await self._all_stations()

        # Two letters: a state code.
        if len(query) == 2 and query.isalpha():
            return [s for s in stations if s.state.lower() == query]

        # "City, ST": match the city part, narrowed to the state when it matches.
        city, _, state = (p.strip() for p in query.partition(","))
        matches = [s for s in stations if city and city in s.name.lower()]
        if state:
            in_state = [s for s in matches if s.state.lower() == state]
            matches = in_state or matches
        return matches

    async def _all_stations(self) -> list[StationCandidate]:
        if self._stations is not None and time.monotonic() - self._fetched_at < CACHE_TTL_S:
            return self._stations

        resp = await self._client.get(
            f"{BASE_URL}/stations.json", params={"type": "tidepredictions"}
        )
        resp.raise_for_status()
        stations = []
        for raw in resp.json().get("stations", []):
            try:
                stations.append(
                    StationCandidate(
                        id=str(raw["id"]),
                        name=raw.get("name") or "",
                        state=raw.get("state") or "",
                        latitude=float(raw["lat"]),
                        longitude=float(raw["lng"]),
                    )
                )
            except (KeyError, TypeError, ValueError):
                logger.debug("Skipping malformed station entry: %r", raw)

        self._stations = stations
        self._fetched_at = time.monotonic()
        logger.info("Cached %d tide stations from CO-OPS metadata API", len(stations))
        return stations
