"""Local geocoder for zip codes and "City, ST" resolved against the location index."""

from __future__ import annotations

import asyncio

from mariner.contracts.geo import Location
from mariner.contracts.port import is_zipcode
from mariner.errors import InputError
from mariner.persistence.location_index import LocationIndex


class LocalGeocoder:
    """Offline geocoding; no network access once the index is provisioned."""

    def __init__(self, index: LocationIndex):
        self._index = index

    async def geocode(self, query: str) -> Location:
        return await asyncio.to_thread(self.geocode_blocking, query)

    def geocode_blocking(self, query: str) -> Location:
        query = query.strip()
        if not query:
            raise InputError("query cannot be empty")

        if is_zipcode(query):
            return self._index.by_zipcode(query[:5])

        parts = [p.strip() for p in query.split(",")]
        if len(parts) != 2:
            raise InputError("invalid format: expected 'City, State' (e.g., 'Chatham, MA')")
        city, state = parts
        if not city or not state:
            raise InputError("city and state cannot be empty")
        return self._index.by_city_state(city, state)
