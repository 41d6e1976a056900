"""Base classes and shared types for Mariner contracts.

Unit conventions (all contracts):
- **Distances**: statute miles, suffix ``_miles``
- **Wind speeds**: knots (kt), suffix ``_kt``
- **Wave / tide heights**: feet, suffix ``_ft`` (tides relative to MLLW)
- **Coordinates**: WGS84 decimal degrees
- **Datetimes**: local station time for tide events, UTC everywhere else
"""

from pydantic import BaseModel, ConfigDict, Field


class MarineModel(BaseModel):
    """Immutable value object.

    Every contract is frozen: the reducer hands the same instances to the
    rendering layer, which must never mutate them.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
    )


class GeoPoint(MarineModel):
    """WGS84 geographic coordinate."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
