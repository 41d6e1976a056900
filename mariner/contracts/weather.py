"""Marine weather — current conditions and the multi-day zone forecast."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from mariner.contracts.common import MarineModel


class WindData(MarineModel):
    """Wind in marine format, e.g. "W winds 15 to 20 kt with gusts up to 30 kt"."""

    direction: str = ""
    speed_min_kt: float = Field(default=0.0, ge=0)
    speed_max_kt: float = Field(default=0.0, ge=0)
    gust_kt: float | None = Field(default=None, ge=0)
    raw_text: str = ""

    @property
    def has_gust(self) -> bool:
        return self.gust_kt is not None


class WaveComponent(MarineModel):
    """A single swell component, e.g. "S 5 ft at 8 seconds"."""

    direction: str
    height_ft: float = Field(..., ge=0)
    period_s: int = Field(..., ge=0)


class SeaState(MarineModel):
    height_min_ft: float = Field(default=0.0, ge=0)
    height_max_ft: float = Field(default=0.0, ge=0)
    components: tuple[WaveComponent, ...] = ()
    raw_text: str = ""


class MarineConditions(MarineModel):
    """Current (first forecast period) marine conditions for a zone."""

    location: str
    summary: str = ""
    wind: WindData = Field(default_factory=WindData)
    seas: SeaState = Field(default_factory=SeaState)
    temperature_f: float | None = None
    visibility_nm: float | None = Field(default=None, ge=0)
    pressure_mb: float | None = None
    updated_at: datetime


class ForecastPeriod(MarineModel):
    """One period of the zone forecast ("TONIGHT", "SAT NIGHT", ...)."""

    name: str
    wind: WindData = Field(default_factory=WindData)
    seas: SeaState = Field(default_factory=SeaState)
    raw_text: str = ""


class ThreeDayForecast(MarineModel):
    periods: tuple[ForecastPeriod, ...] = ()
    updated_at: datetime
