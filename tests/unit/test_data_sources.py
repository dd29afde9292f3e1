"""
Unit Tests for Recipe Data Sources
==================================

Value formatting and payload mapping, with the HTTP client replaced.
"""

from typing import Any, Dict, Optional
from unittest.mock import AsyncMock

import pytest

from inkrecipes.core.errors import DataFetchError
from inkrecipes.recipes import data_sources
from inkrecipes.recipes.data_sources import (
    COINGECKO_URL,
    FORECAST_URL,
    GEOCODING_URL,
    _whole,
    format_clock,
    format_large_number,
    format_number,
    format_timestamp,
    weather_description,
)


class FakeDataClient:
    """Serves canned JSON by URL."""

    def __init__(self, responses: Dict[str, Any]):
        self.responses = responses
        self.requests = []

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        self.requests.append((url, params))
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def use_client(monkeypatch):
    def install(responses: Dict[str, Any]) -> FakeDataClient:
        client = FakeDataClient(responses)
        monkeypatch.setattr(data_sources, "get_data_client", lambda: client)
        return client

    return install


class TestFormatting:
    """Display formatting helpers."""

    @pytest.mark.parametrize(
        "value,expected",
        [(1234.5, "1,234.5"), (42000.0, "42,000"), (0.125, "0.12"), (67123.456, "67,123.46")],
    )
    def test_format_number(self, value, expected):
        assert format_number(value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [(1.5e12, "1.50T"), (2.5e9, "2.50B"), (3e6, "3.00M"), (999.0, "999")],
    )
    def test_format_large_number(self, value, expected):
        assert format_large_number(value) == expected

    def test_format_timestamp(self):
        assert format_timestamp("2024-10-19T14:30:00Z") == "Oct 19, 02:30 PM"

    def test_format_clock(self):
        assert format_clock("2024-10-19T07:05") == "07:05 AM"

    def test_whole_rounds_half_up(self):
        assert _whole(2.5) == "3"
        assert _whole(3.5) == "4"
        assert _whole(-2.5) == "-2"
        assert _whole(17.2) == "17"

    def test_weather_description(self):
        assert weather_description(0) == "Clear sky"
        assert weather_description(63) == "Moderate rain"
        assert weather_description(1000) == "Unknown"


class TestBitcoinPrice:
    """CoinGecko mapping."""

    CURRENT = {
        "name": "Bitcoin",
        "last_updated": "2024-10-19T14:30:00Z",
        "market_data": {
            "current_price": {"usd": 67123.456},
            "price_change_percentage_24h": -1.234,
            "market_cap": {"usd": 1.32e12},
            "total_volume": {"usd": 2.5e10},
            "high_24h": {"usd": 68000},
            "low_24h": {"usd": 66000.5},
        },
    }

    @pytest.mark.asyncio
    async def test_maps_market_data(self, use_client):
        client = use_client({
            f"{COINGECKO_URL}/coins/bitcoin": self.CURRENT,
            f"{COINGECKO_URL}/coins/bitcoin/market_chart": {"prices": [[1, 100.0], [2, 101.5]]},
        })
        props = await data_sources.fetch_bitcoin_price({"crypto_symbol": "bitcoin"})

        assert props["price"] == "67,123.46"
        assert props["change_24h"] == "-1.23"
        assert props["market_cap"] == "1.32T"
        assert props["volume_24h"] == "25.00B"
        assert props["high_24h"] == "68,000"
        assert props["low_24h"] == "66,000.5"
        assert props["last_updated"] == "Oct 19, 02:30 PM"
        assert props["historical_prices"] == [{"timestamp": 1, "price": 100.0}, {"timestamp": 2, "price": 101.5}]
        assert len(client.requests) == 2

    @pytest.mark.asyncio
    async def test_history_failure_is_tolerated(self, use_client):
        use_client({
            f"{COINGECKO_URL}/coins/bitcoin": self.CURRENT,
            f"{COINGECKO_URL}/coins/bitcoin/market_chart": DataFetchError("rate limited"),
        })
        props = await data_sources.fetch_bitcoin_price({})
        assert props["historical_prices"] == []

    @pytest.mark.asyncio
    async def test_missing_market_data(self, use_client):
        use_client({
            f"{COINGECKO_URL}/coins/bitcoin": {"name": "Bitcoin"},
            f"{COINGECKO_URL}/coins/bitcoin/market_chart": {"prices": []},
        })
        with pytest.raises(DataFetchError):
            await data_sources.fetch_bitcoin_price({})

    @pytest.mark.asyncio
    async def test_current_price_failure_propagates(self, use_client):
        use_client({
            f"{COINGECKO_URL}/coins/bitcoin": DataFetchError("status 500"),
            f"{COINGECKO_URL}/coins/bitcoin/market_chart": {"prices": []},
        })
        with pytest.raises(DataFetchError):
            await data_sources.fetch_bitcoin_price({})


class TestWeather:
    """Open-Meteo mapping."""

    GEOCODE = {"results": [{"latitude": 37.77, "longitude": -122.42, "name": "San Francisco", "country": "United States"}]}
    FORECAST = {
        "current": {
            "time": "2024-10-19T14:30",
            "temperature_2m": 18.5,
            "apparent_temperature": 17.4,
            "relative_humidity_2m": 72,
            "wind_speed_10m": 11.6,
            "surface_pressure": 1013.2,
            "weather_code": 2,
        },
        "daily": {
            "temperature_2m_max": [21.5],
            "temperature_2m_min": [12.4],
            "sunrise": ["2024-10-19T07:15"],
            "sunset": ["2024-10-19T18:27"],
        },
    }

    @pytest.mark.asyncio
    async def test_maps_forecast(self, use_client):
        client = use_client({GEOCODING_URL: self.GEOCODE, FORECAST_URL: self.FORECAST})
        props = await data_sources.fetch_weather({"location": "San Francisco"})

        assert props == {
            "temperature": "19",
            "feels_like": "17",
            "humidity": "72",
            "wind_speed": "12",
            "pressure": "1013",
            "description": "Partly cloudy",
            "location": "San Francisco, United States",
            "high_temp": "22",
            "low_temp": "12",
            "sunrise": "07:15 AM",
            "sunset": "06:27 PM",
            "last_updated": "Oct 19, 02:30 PM",
        }
        assert client.requests[0][1]["name"] == "San Francisco"

    @pytest.mark.asyncio
    async def test_unknown_location(self, use_client):
        use_client({GEOCODING_URL: {"results": []}})
        with pytest.raises(DataFetchError):
            await data_sources.fetch_weather({"location": "Atlantis"})

    @pytest.mark.asyncio
    async def test_missing_current_block(self, use_client):
        use_client({GEOCODING_URL: self.GEOCODE, FORECAST_URL: {"daily": {}}})
        with pytest.raises(DataFetchError):
            await data_sources.fetch_weather({})


class TestWikipedia:
    """Random article mapping."""

    @pytest.mark.asyncio
    async def test_maps_summary(self, use_client):
        use_client({
            data_sources.WIKIPEDIA_RANDOM_URL: {
                "title": "E-ink",
                "extract": "x" * 250,
                "description": "Display",
                "thumbnail": {"source": "https://example.org/t.png"},
                "content_urls": {"desktop": {"page": "https://en.wikipedia.org/wiki/E-ink"}},
            }
        })
        props = await data_sources.fetch_wikipedia({})
        assert props["title"] == "E-ink"
        assert props["thumbnail"] == "https://example.org/t.png"
        assert props["url"] == "https://en.wikipedia.org/wiki/E-ink"

    @pytest.mark.asyncio
    async def test_short_extract_rejected(self, use_client):
        use_client({data_sources.WIKIPEDIA_RANDOM_URL: {"title": "Stub", "extract": "Too short."}})
        with pytest.raises(DataFetchError):
            await data_sources.fetch_wikipedia({})


class TestDataClient:
    """Session lifecycle."""

    @pytest.mark.asyncio
    async def test_close_resets_global_client(self, monkeypatch):
        client = data_sources.get_data_client()
        assert data_sources.get_data_client() is client
        monkeypatch.setattr(client, "close", AsyncMock())
        await data_sources.close_data_client()
        client.close.assert_awaited_once()
        assert data_sources.get_data_client() is not client
        await data_sources.close_data_client()
