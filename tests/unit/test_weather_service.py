"""Unit tests for the historical weather service."""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from services.weather_service import (
    HistoricalWeatherService,
    NOAAWeatherService,
    aggregate_weather_days,
    detect_extreme_events,
    estimate_historical_weather,
    is_storm_day,
)
from tests.fixtures.sample_homes import MIAMI_WEATHER


def _client_factory(handler):
    """httpx client factory backed by a mock transport."""
    return lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _service(handler, fixed_now, cache=None, api_key="test-vc-key"):
    return HistoricalWeatherService(
        cache=cache,
        api_key=api_key,
        http_client_factory=_client_factory(handler),
        lookback_years=10,
        clock=lambda: fixed_now,
    )


class TestDailyHeuristics:
    """Tests for storm-day and extreme-event detection."""

    def test_storm_day_by_conditions(self):
        assert is_storm_day({"conditions": "Rain, Overcast", "precip": 0})
        assert is_storm_day({"conditions": "Thunderstorm", "precip": 0})

    def test_storm_day_precip_threshold_is_strict(self):
        """Exactly 0.5 in. is not a storm day; anything above is."""
        assert not is_storm_day({"conditions": "Clear", "precip": 0.5})
        assert is_storm_day({"conditions": "Clear", "precip": 0.51})

    def test_missing_fields(self):
        assert not is_storm_day({})
        assert not is_storm_day({"conditions": None, "precip": None})

    def test_detect_extreme_events(self):
        assert detect_extreme_events("Hurricane warning, tornado watch") == {"hurricane", "tornado"}
        assert detect_extreme_events("Hail") == {"hail"}
        assert detect_extreme_events("Clear") == set()
        assert detect_extreme_events(None) == set()


class TestAggregateWeatherDays:
    """Tests for aggregate_weather_days."""

    def test_aggregation(self, sample_weather_days):
        """Totals are annualized over len(days)/365.25 and rounded."""
        weather = aggregate_weather_days(sample_weather_days, 2014, 2024)

        assert weather.average_rainfall == 127.8
        assert weather.average_snowfall == 91.3
        assert weather.average_temperature == 62
        assert weather.max_temperature == 90
        assert weather.min_temperature == 20
        assert weather.storm_days_per_year == 183
        assert weather.wind_speed_average == 12.5
        assert weather.wind_speed_max == 70
        assert weather.hail_events == 1
        assert weather.hurricane_events == 0
        assert weather.tornado_events == 0
        assert weather.data_years == "2014-2024"
        assert weather.source == "visual-crossing"

    def test_missing_temperature_extremes(self):
        """No tempmax/tempmin in any record leaves the extremes unset."""
        weather = aggregate_weather_days([{"precip": 0.1, "temp": 50}], 2014, 2024)

        assert weather.max_temperature is None
        assert weather.min_temperature is None

    def test_empty_days_rejected(self):
        with pytest.raises(ValueError):
            aggregate_weather_days([], 2014, 2024)


class TestEstimateHistoricalWeather:
    """Tests for the static partial estimate."""

    def test_known_state(self):
        estimate = estimate_historical_weather("fl")
        assert estimate == {"averageRainfall": 54, "averageSnowfall": 0, "source": "estimated"}

    def test_unknown_state_uses_defaults(self):
        estimate = estimate_historical_weather("ZZ")
        assert estimate["averageRainfall"] == 30
        assert estimate["averageSnowfall"] == 10


class TestHistoricalWeatherServiceResolve:
    """Tests for HistoricalWeatherService.resolve."""

    @pytest.mark.asyncio
    async def test_success_builds_request_and_aggregates(self, fixed_now, sample_weather_days):
        """A 200 response is aggregated over a ten-year window."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"days": sample_weather_days})

        weather = await _service(handler, fixed_now).resolve(25.77, -80.19, "Miami", "FL")

        assert weather is not None
        assert weather.data_years == "2014-2024"
        assert weather.storm_days_per_year == 183

        request = requests[0]
        assert request.url.path.endswith("/25.77,-80.19/2014-06-15/2024-06-15")
        assert request.url.params["unitGroup"] == "us"
        assert request.url.params["include"] == "days"
        assert request.url.params["key"] == "test-vc-key"
        assert "windgust" in request.url.params["elements"]

    @pytest.mark.asyncio
    async def test_success_writes_through_to_cache(self, fixed_now, sample_weather_days, zip_cache):
        """Fetched weather is stored under the normalized ZIP."""
        def handler(request):
            return httpx.Response(200, json={"days": sample_weather_days})

        weather = await _service(handler, fixed_now, cache=zip_cache).resolve(
            25.77, -80.19, "Miami", "FL", "33101-1234"
        )

        entry = await zip_cache.get("33101")
        assert entry is not None
        assert entry.weather_data == weather
        assert entry.source == "visual-crossing"

    @pytest.mark.asyncio
    async def test_cache_hit_skips_api(self, fixed_now, zip_cache):
        """A cached entry is returned without any HTTP call."""
        await zip_cache.set("33101", "Miami", "FL", MIAMI_WEATHER)
        handler = MagicMock(side_effect=AssertionError("API must not be called"))

        weather = await _service(handler, fixed_now, cache=zip_cache).resolve(
            25.77, -80.19, "Miami", "FL", "33101"
        )

        assert weather == MIAMI_WEATHER
        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_api_key(self, fixed_now):
        """No key means no request and no data."""
        handler = MagicMock(side_effect=AssertionError("API must not be called"))

        weather = await _service(handler, fixed_now, api_key="").resolve(25.77, -80.19, "Miami", "FL")

        assert weather is None
        handler.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 429, 500, 503])
    async def test_error_status_resolves_to_none(self, fixed_now, status_code):
        def handler(request):
            return httpx.Response(status_code, json={"message": "error"})

        assert await _service(handler, fixed_now).resolve(25.77, -80.19, "Miami", "FL") is None

    @pytest.mark.asyncio
    async def test_network_error_resolves_to_none(self, fixed_now):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        assert await _service(handler, fixed_now).resolve(25.77, -80.19, "Miami", "FL") is None

    @pytest.mark.asyncio
    async def test_invalid_json_resolves_to_none(self, fixed_now):
        def handler(request):
            return httpx.Response(200, content=b"<html>maintenance</html>")

        assert await _service(handler, fixed_now).resolve(25.77, -80.19, "Miami", "FL") is None

    @pytest.mark.asyncio
    async def test_empty_days_resolves_to_none(self, fixed_now, zip_cache):
        """An empty response is not cached."""
        def handler(request):
            return httpx.Response(200, json={"days": []})

        weather = await _service(handler, fixed_now, cache=zip_cache).resolve(
            25.77, -80.19, "Miami", "FL", "33101"
        )

        assert weather is None
        assert await zip_cache.get("33101") is None

    @pytest.mark.asyncio
    async def test_cache_without_weather_falls_through(self, fixed_now, sample_weather_days):
        """An entry holding only climate data does not satisfy a weather lookup."""
        cache = MagicMock()
        cache.get = AsyncMock(return_value=MagicMock(weather_data=None))
        cache.set = AsyncMock()

        def handler(request):
            return httpx.Response(200, json={"days": sample_weather_days})

        weather = await _service(handler, fixed_now, cache=cache).resolve(
            25.77, -80.19, "Miami", "FL", "33101"
        )

        assert weather is not None
        cache.set.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("days", [
        [None],
        [{"conditions": 5, "precip": 0.1}],
        [{"precip": -1.0, "conditions": "Clear"}],
        "not-a-list",
    ])
    async def test_malformed_days_resolve_to_none(self, fixed_now, zip_cache, days):
        """Malformed daily records are treated like a failed lookup and not cached."""
        def handler(request):
            return httpx.Response(200, json={"days": days})

        weather = await _service(handler, fixed_now, cache=zip_cache).resolve(
            25.77, -80.19, "Miami", "FL", "33101"
        )

        assert weather is None
        assert await zip_cache.get("33101") is None

    @pytest.mark.asyncio
    async def test_non_object_days_are_dropped(self, fixed_now, sample_weather_days):
        def handler(request):
            return httpx.Response(200, json={"days": [None, "x", *sample_weather_days]})

        weather = await _service(handler, fixed_now).fetch(25.77, -80.19)

        assert weather == aggregate_weather_days(sample_weather_days, 2014, 2024)

    @pytest.mark.asyncio
    async def test_fetch_bypasses_cache(self, fixed_now, sample_weather_days):
        cache = MagicMock()
        cache.get = AsyncMock()
        cache.set = AsyncMock()

        def handler(request):
            return httpx.Response(200, json={"days": sample_weather_days})

        weather = await _service(handler, fixed_now, cache=cache).fetch(25.77, -80.19, "33101")

        assert weather is not None
        cache.get.assert_not_called()
        cache.set.assert_not_called()


class TestNOAAWeatherService:
    """Tests for the NOAA stub."""

    @pytest.mark.asyncio
    async def test_always_none(self):
        assert await NOAAWeatherService(token="t").resolve(25.77, -80.19) is None
