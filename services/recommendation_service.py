"""
Location-based recommendation pipeline for HomeMinder.

Weather (cache-checked) -> climate estimate -> storm classification ->
local regulations -> compliance tasks. Every stage has a fallback, so the
pipeline never fails because of an external dependency.

Also provides the request handlers used by the HTTP entry points.
"""

import re
import time
from datetime import date
from typing import Any, Dict, Optional, Tuple

import structlog
from pydantic import ValidationError as PydanticValidationError

from config.errors import ErrorCode, ValidationError
from models.recommendations import HomeLocation, LocationRecommendations
from models.weather import HistoricalWeatherData, ZipCacheEntry
from services.climate_service import (
    CLIMATE_ESTIMATE_SOURCE,
    estimate_climate_data,
    fetch_climate_data,
    get_climate_recommendations,
)
from services.compliance_tasks import generate_compliance_tasks
from services.regulations_service import get_compliance_recommendations, get_permit_requirements
from services.storm_frequency import determine_storm_frequency
from services.weather_service import HistoricalWeatherService
from services.zip_cache_service import ZipCodeCache, normalize_zip_code
from utils.pipeline_logger import log_pipeline_stage, log_recommendation_summary

logger = structlog.get_logger(__name__)

ZIP_CODE_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")


class HomeRecommendationService:
    """Runs the recommendation pipeline for one home location."""

    def __init__(
        self,
        cache: Optional[ZipCodeCache] = None,
        weather_service: Optional[HistoricalWeatherService] = None,
    ):
        """Initialize HomeRecommendationService.

        Args:
            cache: ZIP code cache shared by the weather and climate stages.
            weather_service: Historical weather resolver (default uses ``cache``).
        """
        self.cache = cache
        self.weather_service = weather_service or HistoricalWeatherService(cache=cache)

    async def _read_cache(self, zip_code: str) -> Optional[ZipCacheEntry]:
        if self.cache is None or not zip_code:
            return None
        return await self.cache.get(zip_code)

    async def _resolve_weather(
        self,
        home: HomeLocation,
        zip_code: str,
        entry: Optional[ZipCacheEntry],
    ) -> Optional[HistoricalWeatherData]:
        if entry is not None and entry.weather_data is not None:
            return entry.weather_data
        # Without coordinates only a cached result can help
        if home.latitude is None or home.longitude is None:
            return None
        return await self.weather_service.fetch(home.latitude, home.longitude, zip_code or None)

    async def build_recommendations(
        self,
        home: HomeLocation,
        base_date: Optional[date] = None,
    ) -> LocationRecommendations:
        """Resolve climate, storm risk, regulations, and compliance tasks for a home.

        The ZIP cache is read once and written at most once per call.
        Missing city/state/ZIP yields empty regulation and task lists.
        """
        start_time = time.perf_counter()
        base_date = base_date or date.today()
        zip_code = normalize_zip_code(home.zip_code)

        entry = await self._read_cache(zip_code)
        cached_weather = entry.weather_data if entry is not None else None
        cached_climate = entry.climate_data if entry is not None else None

        weather = await self._resolve_weather(home, zip_code, entry)
        log_pipeline_stage("weather", zip_code, resolved=weather is not None, cached=cached_weather is not None)

        climate = cached_climate or estimate_climate_data(home.city, home.state, zip_code)
        log_pipeline_stage("climate", zip_code, source=climate.source)

        fresh_weather = weather if cached_weather is None else None
        fresh_climate = climate if cached_climate is None else None
        if self.cache is not None and zip_code and (fresh_weather is not None or fresh_climate is not None):
            await self.cache.set(
                zip_code,
                home.city,
                home.state,
                fresh_weather,
                fresh_climate,
                source=weather.source if weather else CLIMATE_ESTIMATE_SOURCE,
            )

        storm_frequency = determine_storm_frequency(weather, climate)
        log_pipeline_stage("storm_frequency", zip_code, storm_frequency=storm_frequency.value)

        compliance = get_compliance_recommendations(
            home.city,
            home.state,
            zip_code,
            home.year_built,
            home.home_type,
            home.county,
            current_year=base_date.year,
        )
        tasks = generate_compliance_tasks(
            home.city,
            home.state,
            zip_code,
            home.year_built,
            home.home_type,
            home.county,
            base_date=base_date,
        )

        result = LocationRecommendations(
            zip_code=zip_code,
            weather_data=weather,
            climate_data=climate,
            storm_frequency=storm_frequency,
            climate_recommendations=get_climate_recommendations(climate),
            regulations=compliance.regulations,
            compliance_summary=compliance.summary,
            compliance_tasks=tasks,
        )

        log_recommendation_summary(
            zip_code,
            {
                "storm_frequency": storm_frequency.value,
                "regulations": len(compliance.regulations),
                "compliance_tasks": len(tasks),
                "weather_source": weather.source if weather else None,
            },
            duration_ms=int((time.perf_counter() - start_time) * 1000),
        )
        return result


# =============================================================================
# Request handlers
# =============================================================================


def validate_location(body: Dict[str, Any]) -> Tuple[str, str, str]:
    """Validate and normalize city, state, and ZIP from a request body.

    Returns:
        (city, state, zip_code)

    Raises:
        ValidationError: On a missing field, a malformed ZIP, or a state
            that is not two letters.
    """
    city = (body.get("city") or "").strip()
    state = (body.get("state") or "").strip().upper()
    zip_code = "".join(str(body.get("zipCode") or "").split())

    if not city or not state or not zip_code:
        raise ValidationError(
            message="City, state, and zipCode are required",
            code=ErrorCode.MISSING_FIELD,
        )

    if not ZIP_CODE_PATTERN.match(zip_code):
        raise ValidationError(
            message=f'ZIP code "{zip_code}" does not match required format. Expected: 12345 or 12345-6789',
            field="zipCode",
            details={"received": zip_code},
            code=ErrorCode.INVALID_ZIP_CODE,
        )

    if len(state) != 2:
        raise ValidationError(
            message=f'State must be exactly 2 characters. Received: "{state}"',
            field="state",
            details={"received": state},
            code=ErrorCode.INVALID_STATE,
        )

    return city, state, zip_code


def _year_built(body: Dict[str, Any], default: int) -> int:
    value = body.get("yearBuilt")
    if value in (None, ""):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(
            message=f"yearBuilt must be a year. Received: {value!r}",
            field="yearBuilt",
            code=ErrorCode.INVALID_FIELD,
        )


async def lookup_climate(body: Dict[str, Any], cache: Optional[ZipCodeCache] = None) -> Dict[str, Any]:
    """Climate data, storm frequency, and climate advice for a location."""
    city, state, zip_code = validate_location(body)
    climate = await fetch_climate_data(city, state, zip_code, cache=cache)
    return {
        "climateData": climate.model_dump(by_alias=True, mode="json"),
        "stormFrequency": climate.storm_frequency,
        "recommendations": get_climate_recommendations(climate),
    }


def lookup_compliance(body: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    """Applicable regulations for a home, plus an optional permit check.

    A permit check runs when the body carries both ``taskCategory`` and
    ``taskName``.
    """
    city, state, zip_code = validate_location(body)
    today = today or date.today()

    compliance = get_compliance_recommendations(
        city,
        state,
        zip_code,
        _year_built(body, today.year),
        body.get("homeType") or "single-family",
        body.get("county"),
        current_year=today.year,
    )

    permit = None
    if body.get("taskCategory") and body.get("taskName"):
        permit = get_permit_requirements(city, state, body["taskCategory"], body["taskName"])

    recommendations = []
    if compliance.summary.required > 0:
        recommendations.append(
            f"You have {compliance.summary.required} required compliance item(s). "
            "These are legally required and may result in fines if not completed."
        )
    if compliance.summary.critical > 0:
        recommendations.append(
            f"{compliance.summary.critical} critical safety requirement(s) must be addressed immediately."
        )
    if permit is not None and permit.requires_permit:
        recommendations.append(
            f"This task requires a {permit.permit_type}. "
            "Check with your local building department before starting."
        )

    return {
        "compliance": compliance.model_dump(by_alias=True, mode="json"),
        "permitInfo": permit.model_dump(by_alias=True, mode="json") if permit else None,
        "recommendations": recommendations,
    }


def generate_compliance_tasks_for_home(body: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    """Compliance tasks for a home, ready to hand to the task store."""
    city, state, zip_code = validate_location(body)
    today = today or date.today()

    tasks = generate_compliance_tasks(
        city,
        state,
        zip_code,
        _year_built(body, today.year),
        body.get("homeType") or "single-family",
        body.get("county"),
        base_date=today,
    )
    return {
        "tasks": [task.model_dump(by_alias=True, mode="json") for task in tasks],
        "count": len(tasks),
    }


async def recommend_for_home(
    body: Dict[str, Any],
    service: Optional[HomeRecommendationService] = None,
) -> Dict[str, Any]:
    """Full recommendation pipeline for a home described by a request body."""
    validate_location(body)
    try:
        home = HomeLocation.model_validate(body)
    except PydanticValidationError as e:
        raise ValidationError(
            message="Invalid home location",
            details={"errors": e.errors(include_url=False, include_context=False)},
        )

    service = service or HomeRecommendationService(cache=ZipCodeCache())
    result = await service.build_recommendations(home)
    return result.model_dump(by_alias=True, mode="json")
