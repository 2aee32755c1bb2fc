"""Recommendation pipeline result models for HomeMinder."""

from typing import List, Optional

from pydantic import BaseModel, Field

from models.regulations import ComplianceSummary, LocalRegulation
from models.tasks import ComplianceTask
from models.weather import ClimateData, HistoricalWeatherData, StormFrequency


class HomeLocation(BaseModel):
    """Location and home attributes the recommendation pipeline consumes."""

    city: str = ""
    state: str = ""
    zip_code: str = Field(default="", alias="zipCode")
    county: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    year_built: Optional[int] = Field(default=None, alias="yearBuilt")
    home_type: str = Field(default="single-family", alias="homeType")

    class Config:
        populate_by_name = True


class LocationRecommendations(BaseModel):
    """Everything resolved for a home location in one pipeline pass."""

    zip_code: str = Field(..., alias="zipCode")
    weather_data: Optional[HistoricalWeatherData] = Field(default=None, alias="weatherData")
    climate_data: ClimateData = Field(..., alias="climateData")
    storm_frequency: StormFrequency = Field(..., alias="stormFrequency")
    climate_recommendations: List[str] = Field(default_factory=list, alias="climateRecommendations")
    regulations: List[LocalRegulation] = Field(default_factory=list)
    compliance_summary: ComplianceSummary = Field(default_factory=ComplianceSummary, alias="complianceSummary")
    compliance_tasks: List[ComplianceTask] = Field(default_factory=list, alias="complianceTasks")

    class Config:
        populate_by_name = True
        use_enum_values = True
