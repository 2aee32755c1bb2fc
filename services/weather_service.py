"""
Historical Weather Service for HomeMinder.

Resolves decade-scale weather summaries (rainfall, snowfall, temperature,
wind, storm days, named extreme events) for a home location.

Architecture:
- Consults the ZIP code cache first, returning immediately on a hit
- Fetches 10 years of daily records from the Visual Crossing timeline API
- Aggregates daily records into an annualized HistoricalWeatherData
- Writes successful results through to the ZIP code cache
- Every failure (missing key, auth, rate limit, network, empty data)
  resolves to None so callers fall back to the static climate estimate

API Details:
- Endpoint: https://weather.visualcrossing.com/VisualCrossingWebServices/rest/services/timeline/
- Auth: API key as the `key` query parameter
- No internal retries: callers own retry policy
"""

import time
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set

import httpx
import structlog

from config.errors import WeatherServiceError
from config.settings import settings
from models.weather import HistoricalWeatherData

logger = structlog.get_logger(__name__)


# =============================================================================
# Constants
# =============================================================================

VISUAL_CROSSING_BASE_URL = (
    "https://weather.visualcrossing.com/VisualCrossingWebServices/rest/services/timeline"
)
VISUAL_CROSSING_ELEMENTS = "datetime,precip,snow,temp,tempmax,tempmin,windspeed,windgust,conditions"
VISUAL_CROSSING_SOURCE = "visual-crossing"

DAYS_PER_YEAR = 365.25
STORM_PRECIP_THRESHOLD_INCHES = 0.5
STORM_CONDITION_KEYWORDS = ("storm", "thunder", "rain")
EXTREME_EVENT_KEYWORDS = ("hurricane", "tornado", "hail")


# =============================================================================
# Daily record heuristics
# =============================================================================


def _number(value: Any) -> float:
    """Coerce an API numeric field (may be null) to float."""
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def detect_extreme_events(conditions: Optional[str]) -> Set[str]:
    """Return the named extreme events mentioned in a condition string.

    Plain substring matching on the provider's free-text conditions.
    """
    if not conditions:
        return set()
    text = conditions.lower()
    return {keyword for keyword in EXTREME_EVENT_KEYWORDS if keyword in text}


def is_storm_day(day: Dict[str, Any]) -> bool:
    """A storm day mentions storm/thunder/rain or has more than 0.5 in. of precipitation."""
    conditions = (day.get("conditions") or "").lower()
    if any(keyword in conditions for keyword in STORM_CONDITION_KEYWORDS):
        return True
    return _number(day.get("precip")) > STORM_PRECIP_THRESHOLD_INCHES


def aggregate_weather_days(
    days: List[Dict[str, Any]],
    start_year: int,
    end_year: int,
    source: str = VISUAL_CROSSING_SOURCE,
) -> HistoricalWeatherData:
    """Aggregate daily weather records into an annualized summary.

    Totals are annualized by ``len(days) / 365.25``. Means are taken over
    all days. Max wind includes gusts.

    Args:
        days: Non-empty list of daily records (Visual Crossing shape)
        start_year: First year of the window
        end_year: Last year of the window
        source: Data source tag

    Returns:
        HistoricalWeatherData
    """
    if not days:
        raise ValueError("Cannot aggregate an empty list of days")

    total_precip = 0.0
    total_snow = 0.0
    total_temp = 0.0
    total_wind = 0.0
    max_temp: Optional[float] = None
    min_temp: Optional[float] = None
    max_wind = 0.0
    storm_days = 0
    events = {keyword: 0 for keyword in EXTREME_EVENT_KEYWORDS}

    for day in days:
        total_precip += _number(day.get("precip"))
        total_snow += _number(day.get("snow"))

        temp = day.get("temp")
        if temp:
            total_temp += _number(temp)

        if day.get("tempmax") is not None:
            high = _number(day["tempmax"])
            max_temp = high if max_temp is None else max(max_temp, high)
        if day.get("tempmin") is not None:
            low = _number(day["tempmin"])
            min_temp = low if min_temp is None else min(min_temp, low)

        wind = _number(day.get("windspeed"))
        total_wind += wind
        max_wind = max(max_wind, wind, _number(day.get("windgust")))

        if is_storm_day(day):
            storm_days += 1

        for event in detect_extreme_events(day.get("conditions")):
            events[event] += 1

    day_count = len(days)
    years = day_count / DAYS_PER_YEAR

    return HistoricalWeatherData(
        average_rainfall=round(total_precip / years, 1),
        average_snowfall=round(total_snow / years, 1),
        average_temperature=round(total_temp / day_count),
        max_temperature=round(max_temp) if max_temp is not None else None,
        min_temperature=round(min_temp) if min_temp is not None else None,
        storm_days_per_year=round(storm_days / years),
        wind_speed_average=round(total_wind / day_count, 1),
        wind_speed_max=round(max_wind),
        hurricane_events=events["hurricane"],
        tornado_events=events["tornado"],
        hail_events=events["hail"],
        source=source,
        data_years=f"{start_year}-{end_year}",
    )


def _years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # Feb 29 -> Feb 28
        return day.replace(year=day.year - years, day=28)


# =============================================================================
# Static estimate (no network)
# =============================================================================


def estimate_historical_weather(state: Optional[str], city: Optional[str] = None) -> Dict[str, Any]:
    """Partial weather estimate from state tables when no API data is available.

    Only rainfall and snowfall are estimated.
    """
    from services.climate_service import (
        DEFAULT_RAINFALL_INCHES,
        DEFAULT_SNOWFALL_INCHES,
        RAINFALL_BY_STATE,
        SNOWFALL_BY_STATE,
    )

    code = (state or "").strip().upper()[:2]
    return {
        "averageRainfall": RAINFALL_BY_STATE.get(code, DEFAULT_RAINFALL_INCHES),
        "averageSnowfall": SNOWFALL_BY_STATE.get(code, DEFAULT_SNOWFALL_INCHES),
        "source": "estimated",
    }


# =============================================================================
# Resolvers
# =============================================================================


def _default_client_factory() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.weather_api_timeout_seconds)


class HistoricalWeatherService:
    """Resolve historical weather for a location, cache first.

    Never raises for external failures; returns None instead.
    """

    def __init__(
        self,
        cache=None,
        api_key: Optional[str] = None,
        http_client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
        lookback_years: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize HistoricalWeatherService.

        Args:
            cache: Optional ZipCodeCache. Without it, every call goes to the API.
            api_key: Visual Crossing key (default from settings/secrets).
            http_client_factory: Callable returning an httpx.AsyncClient.
            lookback_years: Window length in years (default from settings).
            clock: Callable returning the current UTC time (for tests).
        """
        self.cache = cache
        self._api_key = api_key
        self._client_factory = http_client_factory or _default_client_factory
        self.lookback_years = lookback_years or settings.weather_lookback_years
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def api_key(self) -> Optional[str]:
        if self._api_key is None:
            self._api_key = settings.visual_crossing_api_key
        return self._api_key

    async def resolve(
        self,
        latitude: float,
        longitude: float,
        city: str,
        state: str,
        zip_code: Optional[str] = None,
    ) -> Optional[HistoricalWeatherData]:
        """Resolve historical weather for a location.

        Args:
            latitude: Location latitude
            longitude: Location longitude
            city: City name (stored with the cache entry)
            state: Two-letter state code (stored with the cache entry)
            zip_code: Optional ZIP code; enables cache lookup and write-through

        Returns:
            HistoricalWeatherData, or None when unavailable
        """
        if zip_code and self.cache is not None:
            cached = await self.cache.get(zip_code)
            if cached is not None and cached.weather_data is not None:
                logger.info("weather_cache_hit", zip_code=zip_code)
                return cached.weather_data

        weather = await self.fetch(latitude, longitude, zip_code)

        if weather is not None and zip_code and self.cache is not None:
            await self.cache.set(zip_code, city, state, weather, source=VISUAL_CROSSING_SOURCE)

        return weather

    async def fetch(
        self,
        latitude: float,
        longitude: float,
        zip_code: Optional[str] = None,
    ) -> Optional[HistoricalWeatherData]:
        """Fetch and aggregate historical weather from the API, bypassing the cache.

        Returns:
            HistoricalWeatherData, or None when unavailable
        """
        if not self.api_key:
            logger.warning("weather_api_key_missing", zip_code=zip_code)
            return None

        end = self._clock().date()
        start = _years_before(end, self.lookback_years)
        start_time = time.perf_counter()

        try:
            days = await self._fetch_days(latitude, longitude, start, end)
        except WeatherServiceError as e:
            logger.warning(
                "weather_api_error",
                zip_code=zip_code,
                status_code=e.status_code,
                error=e.message,
            )
            return None
        except httpx.HTTPError as e:
            logger.warning("weather_api_failure", zip_code=zip_code, error=str(e))
            return None
        except ValueError as e:
            logger.warning("weather_api_invalid_json", zip_code=zip_code, error=str(e))
            return None

        if not days:
            logger.warning("weather_api_no_data", zip_code=zip_code)
            return None

        try:
            weather = aggregate_weather_days(days, start.year, end.year, VISUAL_CROSSING_SOURCE)
        except (AttributeError, TypeError, ValueError) as e:
            # pydantic.ValidationError is a ValueError
            logger.warning("weather_api_invalid_data", zip_code=zip_code, days=len(days), error=str(e))
            return None

        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "weather_fetch_success",
            zip_code=zip_code,
            days=len(days),
            storm_days_per_year=weather.storm_days_per_year,
            latency_ms=round(latency_ms, 2),
        )
        return weather

    async def _fetch_days(
        self,
        latitude: float,
        longitude: float,
        start: date,
        end: date,
    ) -> List[Dict[str, Any]]:
        """Fetch daily records from the Visual Crossing timeline API.

        Raises:
            WeatherServiceError: On 401, 429, or any other non-2xx status
            httpx.HTTPError: On network failures
            ValueError: On an unparseable body or malformed days field
        """
        url = f"{VISUAL_CROSSING_BASE_URL}/{latitude},{longitude}/{start.isoformat()}/{end.isoformat()}"
        params = {
            "unitGroup": "us",
            "include": "days",
            "key": self.api_key,
            "elements": VISUAL_CROSSING_ELEMENTS,
        }

        async with self._client_factory() as client:
            response = await client.get(url, params=params)

        if response.status_code == 401:
            raise WeatherServiceError("Invalid weather API key", status_code=401)
        if response.status_code == 429:
            raise WeatherServiceError("Weather API rate limit exceeded", status_code=429)
        if not response.is_success:
            raise WeatherServiceError(
                f"Weather API returned {response.status_code}",
                status_code=response.status_code,
            )

        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("Weather API returned a non-object body")
        days = payload.get("days") or []
        if not isinstance(days, list):
            raise ValueError("Weather API returned a non-list days field")
        return [day for day in days if isinstance(day, dict)]


class NOAAWeatherService:
    """NOAA Climate Data Online resolver.

    Not implemented: always resolves to None.
    """

    def __init__(self, token: Optional[str] = None):
        self.token = token

    async def resolve(self, latitude: float, longitude: float) -> Optional[HistoricalWeatherData]:
        # TODO: query the NOAA CDO GHCND dataset once a token is provisioned
        logger.debug("noaa_weather_not_implemented", latitude=latitude, longitude=longitude)
        return None

