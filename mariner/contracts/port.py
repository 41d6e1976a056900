"""Saved port: a user-named location configuration.

Stored in the ``saved_ports`` table of the local database; ``name`` is the
natural key used for upsert and delete.
"""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import Field

from mariner.contracts.common import MarineModel

_ZIPCODE_RE = re.compile(r"^\d{5}(-\d{4})?$")


def is_zipcode(text: str) -> bool:
    """True for a 5-digit or ZIP+4 US zip code."""
    return bool(_ZIPCODE_RE.match(text.strip()))


class SavedPort(MarineModel):
    id: int | None = None
    name: str = Field(..., min_length=1)
    state: str = ""
    city: str = ""
    zipcode: str = ""
    zone_code: str = Field(..., min_length=1)
    station_id: str = ""
    latitude: float
    longitude: float
    created_at: datetime | None = None

    @staticmethod
    def location_fields(query: str) -> dict[str, str]:
        """Split the original search query into city / state / zipcode.

        Examples:
            "02633"       -> zipcode
            "Chatham, MA" -> city + state
            "Chatham"     -> city
        """
        query = query.strip()
        if is_zipcode(query):
            return {"zipcode": query}
        if "," in query:
            city, _, state = query.partition(",")
            return {"city": city.strip(), "state": state.strip()}
        return {"city": query}
