"""Storm frequency classification.

Weather-derived classification is preferred; the static state-based
estimate is the fallback. The two consume different evidence and are not
expected to agree for the same location.
"""

from typing import Optional

from models.weather import ClimateData, HistoricalWeatherData, StormFrequency


def calculate_storm_frequency_from_weather(weather: HistoricalWeatherData) -> StormFrequency:
    """Classify storm frequency from historical weather. First match wins."""
    hurricanes = weather.hurricane_events
    tornadoes = weather.tornado_events
    hail = weather.hail_events
    storm_days = weather.storm_days_per_year

    if hurricanes >= 2 or (hurricanes >= 1 and storm_days > 60):
        return StormFrequency.SEVERE

    if (
        tornadoes >= 3
        or storm_days > 50
        or (tornadoes >= 1 and storm_days > 40)
        or (hurricanes >= 1 and storm_days > 30)
    ):
        return StormFrequency.HIGH

    if storm_days > 30 or tornadoes >= 1 or hail >= 5 or weather.wind_speed_max > 60:
        return StormFrequency.MODERATE

    return StormFrequency.LOW


def determine_storm_frequency(
    weather: Optional[HistoricalWeatherData] = None,
    climate: Optional[ClimateData] = None,
) -> StormFrequency:
    """Pick the best available storm frequency: weather, then climate, then moderate."""
    if weather is not None:
        return calculate_storm_frequency_from_weather(weather)
    if climate is not None:
        return StormFrequency(climate.storm_frequency)
    return StormFrequency.MODERATE
