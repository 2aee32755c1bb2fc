"""
Climate Estimation Service for HomeMinder.

Location-based climate estimate from static state tables. Used as the
guaranteed fallback when historical weather data is unavailable: it never
makes a network call and never fails.
"""

from typing import Dict, FrozenSet, List, Optional

import structlog

from models.weather import ClimateData, StormFrequency

logger = structlog.get_logger(__name__)


# =============================================================================
# State tables
# =============================================================================

CLIMATE_ESTIMATE_SOURCE = "location-based-estimate"

HURRICANE_PRONE_STATES: FrozenSet[str] = frozenset(
    {"FL", "LA", "TX", "NC", "SC", "GA", "AL", "MS"}
)
TORNADO_PRONE_STATES: FrozenSet[str] = frozenset(
    {"TX", "OK", "KS", "NE", "IA", "MO", "AR", "MS", "AL", "TN", "KY", "IL", "IN", "OH"}
)
HIGH_STORM_STATES: FrozenSet[str] = frozenset(
    {"FL", "LA", "TX", "OK", "KS", "NE", "IA", "MO", "AR", "MS", "AL"}
)
# Most hurricane-exposed states
SEVERE_STORM_STATES: FrozenSet[str] = frozenset({"FL", "LA"})
MODERATE_STORM_STATES: FrozenSet[str] = frozenset(
    {"CA", "NY", "NJ", "PA", "VA", "MD", "DE", "CT", "MA", "RI", "NH", "ME", "VT"}
)

# Risk flags use their own, narrower lists
HURRICANE_RISK_STATES: FrozenSet[str] = HURRICANE_PRONE_STATES
TORNADO_RISK_STATES: FrozenSet[str] = frozenset(
    {"TX", "OK", "KS", "NE", "IA", "MO", "AR", "MS", "AL", "TN"}
)
HAIL_RISK_STATES: FrozenSet[str] = frozenset({"TX", "OK", "KS", "NE", "CO", "WY"})

# Inches per year
RAINFALL_BY_STATE: Dict[str, float] = {
    "FL": 54, "LA": 60, "AL": 56, "MS": 56, "GA": 50, "SC": 49, "NC": 50,
    "NY": 42, "PA": 42, "NJ": 45, "MA": 47, "CT": 50, "RI": 47,
    "WA": 38, "OR": 28, "AZ": 13, "NV": 9, "UT": 15, "NM": 14,
    "IL": 39, "IN": 41, "OH": 39, "MI": 32, "WI": 32, "MN": 27,
    "TX": 28, "OK": 36, "KS": 28, "NE": 23,
    "CO": 17, "WY": 13, "MT": 15, "ID": 18, "CA": 22,
}
DEFAULT_RAINFALL_INCHES = 30

SNOWFALL_BY_STATE: Dict[str, float] = {
    "ME": 77, "VT": 89, "NH": 71, "NY": 61, "MI": 60, "WI": 46, "MN": 54,
    "CO": 67, "UT": 51, "WY": 47, "MT": 48, "ID": 47,
    "MA": 43, "CT": 37, "PA": 38, "OH": 28, "IN": 25, "IL": 26,
    "FL": 0, "CA": 0, "AZ": 0, "NV": 0, "TX": 2, "LA": 0,
    "GA": 1, "SC": 1, "NC": 5,
}
DEFAULT_SNOWFALL_INCHES = 10

WIND_ZONE_BY_STATE: Dict[str, str] = {
    "FL": "Zone 3 (High wind)",
    "LA": "Zone 3 (High wind)",
    "TX": "Zone 2 (Moderate wind)",
    "CA": "Zone 2 (Moderate wind)",
    "CO": "Zone 2 (Moderate wind)",
    "WY": "Zone 2 (Moderate wind)",
}
DEFAULT_WIND_ZONE = "Zone 1 (Standard)"

RAINFALL_GUTTER_THRESHOLD = 45
SNOWFALL_ROOF_THRESHOLD = 40


def _state_code(state: Optional[str]) -> str:
    return (state or "").strip().upper()[:2]


# =============================================================================
# Estimators
# =============================================================================


def estimate_storm_frequency(state: Optional[str], city: Optional[str] = None) -> StormFrequency:
    """Classify storm frequency from state membership alone.

    FL and LA are severe; any other hurricane, tornado, or high-storm
    state is high; the north-east and California are moderate; everything
    else is low.
    """
    code = _state_code(state)

    if code in SEVERE_STORM_STATES:
        return StormFrequency.SEVERE
    if code in HURRICANE_PRONE_STATES or code in TORNADO_PRONE_STATES or code in HIGH_STORM_STATES:
        return StormFrequency.HIGH
    if code in MODERATE_STORM_STATES:
        return StormFrequency.MODERATE
    return StormFrequency.LOW


def estimate_climate_data(
    city: Optional[str],
    state: Optional[str],
    zip_code: Optional[str] = None,
) -> ClimateData:
    """Estimate climate data for a location. Never raises.

    Table defaults apply only when the state is absent from a table, so
    a recorded 0 (e.g. FL snowfall) is kept as 0.
    """
    code = _state_code(state)

    return ClimateData(
        storm_frequency=estimate_storm_frequency(code, city),
        average_rainfall=RAINFALL_BY_STATE.get(code, DEFAULT_RAINFALL_INCHES),
        average_snowfall=SNOWFALL_BY_STATE.get(code, DEFAULT_SNOWFALL_INCHES),
        wind_zone=WIND_ZONE_BY_STATE.get(code, DEFAULT_WIND_ZONE),
        hurricane_risk=code in HURRICANE_RISK_STATES,
        tornado_risk=code in TORNADO_RISK_STATES,
        hail_risk=code in HAIL_RISK_STATES,
        source=CLIMATE_ESTIMATE_SOURCE,
    )


async def fetch_climate_data(
    city: Optional[str],
    state: Optional[str],
    zip_code: Optional[str],
    cache=None,
) -> ClimateData:
    """Return cached climate data for the ZIP when present, else the estimate.

    The cache already degrades every failure to a miss, so this never raises.
    """
    if cache is not None and zip_code:
        entry = await cache.get(zip_code)
        if entry is not None and entry.climate_data is not None:
            logger.info("climate_cache_hit", zip_code=zip_code)
            return entry.climate_data

    climate = estimate_climate_data(city, state, zip_code)
    logger.debug(
        "climate_estimated",
        state=_state_code(state),
        storm_frequency=climate.storm_frequency,
    )
    return climate


def get_climate_recommendations(climate: ClimateData) -> List[str]:
    """Advisory maintenance notes driven by a location's climate."""
    recommendations: List[str] = []

    if climate.storm_frequency in (StormFrequency.HIGH, StormFrequency.SEVERE):
        recommendations.append("Schedule quarterly roof inspections due to high storm frequency")
        recommendations.append("Clean gutters monthly during storm season")

    if climate.hurricane_risk:
        recommendations.append("Ensure roof is rated for high winds (hurricane zone)")
        recommendations.append("Install or inspect storm shutters before hurricane season")

    if climate.tornado_risk:
        recommendations.append("Consider a tornado safe room or reinforced shelter area")

    if climate.average_rainfall > RAINFALL_GUTTER_THRESHOLD:
        recommendations.append("High rainfall area: keep gutters and downspouts clear and check drainage")

    if climate.average_snowfall > SNOWFALL_ROOF_THRESHOLD:
        recommendations.append("Heavy snowfall area: inspect roof for snow load capacity")
        recommendations.append("Check attic insulation and heating system before winter")

    return recommendations
