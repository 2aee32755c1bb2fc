"""Weather and climate Pydantic models for HomeMinder.

Historical weather is resolved from an external API and cached per ZIP
code; climate data is a static, location-based estimate used as fallback.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# ENUMS
# =============================================================================


class StormFrequency(str, Enum):
    """Ordinal storm risk level for a location."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    SEVERE = "severe"


# =============================================================================
# HISTORICAL WEATHER MODEL
# =============================================================================


class HistoricalWeatherData(BaseModel):
    """Decade-scale weather summary for a location.

    Rainfall/snowfall are annualized inches; event counts cover the whole
    lookback window (10 years by default).
    """

    average_rainfall: float = Field(..., ge=0, alias="averageRainfall", description="Inches per year")
    average_snowfall: float = Field(..., ge=0, alias="averageSnowfall", description="Inches per year")
    average_temperature: float = Field(..., alias="averageTemperature", description="Fahrenheit")
    max_temperature: Optional[float] = Field(
        default=None, alias="maxTemperature", description="Highest daily max in window (F)"
    )
    min_temperature: Optional[float] = Field(
        default=None, alias="minTemperature", description="Lowest daily min in window (F)"
    )
    storm_days_per_year: float = Field(..., ge=0, alias="stormDaysPerYear")
    wind_speed_average: float = Field(..., ge=0, alias="windSpeedAverage", description="mph")
    wind_speed_max: float = Field(..., ge=0, alias="windSpeedMax", description="mph, gusts included")
    hurricane_events: int = Field(default=0, ge=0, alias="hurricaneEvents")
    tornado_events: int = Field(default=0, ge=0, alias="tornadoEvents")
    hail_events: int = Field(default=0, ge=0, alias="hailEvents")
    source: str = Field(default="visual-crossing")
    data_years: str = Field(..., alias="dataYears", description='e.g. "2014-2024"')

    class Config:
        populate_by_name = True


# =============================================================================
# CLIMATE ESTIMATE MODEL
# =============================================================================


class ClimateData(BaseModel):
    """Location-based climate estimate (no network call involved)."""

    storm_frequency: StormFrequency = Field(..., alias="stormFrequency")
    average_rainfall: float = Field(..., ge=0, alias="averageRainfall")
    average_snowfall: float = Field(..., ge=0, alias="averageSnowfall")
    wind_zone: Optional[str] = Field(default=None, alias="windZone")
    hurricane_risk: bool = Field(default=False, alias="hurricaneRisk")
    tornado_risk: bool = Field(default=False, alias="tornadoRisk")
    hail_risk: bool = Field(default=False, alias="hailRisk")
    source: str = Field(default="location-based-estimate")

    class Config:
        populate_by_name = True
        use_enum_values = True


# =============================================================================
# ZIP CODE CACHE MODELS
# =============================================================================


class ZipCacheEntry(BaseModel):
    """Cached weather/climate data for one normalized 5-digit ZIP code."""

    zip_code: str = Field(..., alias="zipCode", min_length=1, max_length=5)
    city: str = Field(default="")
    state: str = Field(default="")
    weather_data: Optional[HistoricalWeatherData] = Field(default=None, alias="weatherData")
    climate_data: Optional[ClimateData] = Field(default=None, alias="climateData")
    source: str = Field(default="visual-crossing")
    expires_at: datetime = Field(..., alias="expiresAt")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    class Config:
        populate_by_name = True

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check whether the entry is past its expiry time."""
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at < now


class ZipCacheStats(BaseModel):
    """Counts of cached ZIP entries."""

    total_entries: int = Field(default=0, ge=0, alias="totalEntries")
    expired_entries: int = Field(default=0, ge=0, alias="expiredEntries")
    valid_entries: int = Field(default=0, ge=0, alias="validEntries")

    class Config:
        populate_by_name = True
