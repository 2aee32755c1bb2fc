"""Home inventory Pydantic models for HomeMinder.

Plain structured data supplied by the web application: home attributes,
major systems, appliances, and exterior/interior features.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class HomeDetails(BaseModel):
    """Home metadata and resolved climate attributes."""

    address: str = ""
    city: str
    state: str
    zip_code: str = Field(..., alias="zipCode")
    year_built: int = Field(..., ge=1600, le=2100, alias="yearBuilt")
    square_footage: Optional[float] = Field(default=None, ge=0, alias="squareFootage")
    lot_size: Optional[float] = Field(default=None, ge=0, alias="lotSize")
    home_type: str = Field(default="single-family", alias="homeType")
    county: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    climate_zone: Optional[str] = Field(default=None, alias="climateZone")
    storm_frequency: Optional[str] = Field(default=None, alias="stormFrequency")
    average_rainfall: Optional[float] = Field(default=None, alias="averageRainfall")
    average_snowfall: Optional[float] = Field(default=None, alias="averageSnowfall")
    wind_zone: Optional[str] = Field(default=None, alias="windZone")

    class Config:
        populate_by_name = True


class HomeSystem(BaseModel):
    """Major home system (roof, HVAC, plumbing, electrical, ...)."""

    system_type: str = Field(..., alias="systemType")
    brand: Optional[str] = None
    model: Optional[str] = None
    install_date: Optional[str] = Field(default=None, alias="installDate")
    expected_lifespan: Optional[int] = Field(default=None, ge=0, alias="expectedLifespan")
    material: Optional[str] = None
    capacity: Optional[str] = None
    condition: Optional[str] = None
    last_inspection: Optional[str] = Field(default=None, alias="lastInspection")
    storm_resistance: Optional[str] = Field(default=None, alias="stormResistance")

    class Config:
        populate_by_name = True
        protected_namespaces = ()


class HomeAppliance(BaseModel):
    appliance_type: str = Field(..., alias="applianceType")
    brand: Optional[str] = None
    model: Optional[str] = None
    install_date: Optional[str] = Field(default=None, alias="installDate")
    expected_lifespan: Optional[int] = Field(default=None, ge=0, alias="expectedLifespan")
    usage_frequency: Optional[str] = Field(default=None, alias="usageFrequency")

    class Config:
        populate_by_name = True
        protected_namespaces = ()


class ExteriorFeature(BaseModel):
    feature_type: str = Field(..., alias="featureType")
    material: Optional[str] = None
    install_date: Optional[str] = Field(default=None, alias="installDate")
    expected_lifespan: Optional[int] = Field(default=None, ge=0, alias="expectedLifespan")

    class Config:
        populate_by_name = True


class InteriorFeature(BaseModel):
    feature_type: str = Field(..., alias="featureType")
    material: Optional[str] = None
    install_date: Optional[str] = Field(default=None, alias="installDate")
    expected_lifespan: Optional[int] = Field(default=None, ge=0, alias="expectedLifespan")
    room: Optional[str] = None

    class Config:
        populate_by_name = True


class HomeInventoryData(BaseModel):
    """Full home inventory used to build the task generation prompt."""

    home: HomeDetails
    systems: List[HomeSystem] = Field(default_factory=list)
    appliances: List[HomeAppliance] = Field(default_factory=list)
    exterior_features: List[ExteriorFeature] = Field(default_factory=list, alias="exteriorFeatures")
    interior_features: List[InteriorFeature] = Field(default_factory=list, alias="interiorFeatures")

    class Config:
        populate_by_name = True
