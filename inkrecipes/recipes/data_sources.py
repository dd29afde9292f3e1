"""
Recipe Data Sources
===================

Async data sources for the bundled recipes. Each takes the recipe's resolved
parameters and returns a mapping of props; HTTP or payload problems raise
DataFetchError so the resolver falls back to the recipe's default props.
"""

import asyncio
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

import aiohttp

from ..config.logging import get_logger
from ..config.settings import get_settings
from ..core.errors import DataFetchError

logger = get_logger(__name__)

COINGECKO_URL = "https://api.coingecko.com/api/v3"
GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
WIKIPEDIA_RANDOM_URL = "https://en.wikipedia.org/api/rest_v1/page/random/summary"

DEFAULT_LOCATION = "San Francisco"
MIN_EXTRACT_LENGTH = 200

WEATHER_CODES: Dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Foggy",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snow fall",
    73: "Moderate snow fall",
    75: "Heavy snow fall",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}


class DataClient:
    """Shared aiohttp session for data sources."""

    def __init__(self, timeout: Optional[float] = None, user_agent: Optional[str] = None):
        settings = get_settings()
        self.timeout = timeout or settings.http_timeout
        self.user_agent = user_agent or settings.http_user_agent
        self.logger: Any = logger.bind(component="data_client")
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout, connect=min(self.timeout, 5))
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={"Accept": "application/json", "User-Agent": self.user_agent},
            )
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a JSON document.

        Raises:
            DataFetchError: On connection errors, timeouts or non-200 responses
        """
        try:
            session = await self._get_session()
            async with session.get(url, params=params) as response:
                if response.status != 200:
                    raise DataFetchError(f"{url} responded with status {response.status}")
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            self.logger.warning("Data request failed", url=url, error=str(e))
            raise DataFetchError(f"Request to {url} failed: {e}") from e


_data_client: Optional[DataClient] = None


def get_data_client() -> DataClient:
    global _data_client
    if _data_client is None:
        _data_client = DataClient()
    return _data_client


async def close_data_client() -> None:
    global _data_client
    if _data_client:
        await _data_client.close()
        _data_client = None


def format_number(value: float) -> str:
    """Thousands separators and at most two decimals, trailing zeros dropped."""
    formatted = f"{value:,.2f}"
    return formatted.rstrip("0").rstrip(".") if "." in formatted else formatted


def format_large_number(value: float) -> str:
    for threshold, suffix in ((1e12, "T"), (1e9, "B"), (1e6, "M")):
        if value >= threshold:
            return f"{value / threshold:.2f}{suffix}"
    return format_number(value)


def _parse_time(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def format_timestamp(value: str) -> str:
    """ISO timestamp as e.g. ``Oct 19, 02:30 PM``."""
    moment = _parse_time(value)
    return f"{moment:%b} {moment.day}, {moment:%I:%M %p}"


def format_clock(value: str) -> str:
    return f"{_parse_time(value):%I:%M %p}"


def _whole(value: float) -> str:
    return str(math.floor(value + 0.5))


def weather_description(code: int) -> str:
    return WEATHER_CODES.get(code, "Unknown")


async def fetch_bitcoin_price(params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Current market data and one-day price history from CoinGecko.

    Args:
        params: ``crypto_symbol`` is the CoinGecko coin id, default ``bitcoin``
    """
    client = get_data_client()
    symbol = params.get("crypto_symbol") or "bitcoin"
    current, history = await asyncio.gather(
        client.get_json(
            f"{COINGECKO_URL}/coins/{symbol}",
            params={
                "localization": "false",
                "tickers": "false",
                "market_data": "true",
                "community_data": "false",
                "developer_data": "false",
                "sparkline": "false",
            },
        ),
        client.get_json(f"{COINGECKO_URL}/coins/{symbol}/market_chart", params={"vs_currency": "usd", "days": 1}),
        return_exceptions=True,
    )
    if isinstance(current, BaseException):
        raise current

    market = current.get("market_data") if isinstance(current, dict) else None
    if not market:
        raise DataFetchError("No market data available")

    historical_prices: List[Dict[str, float]] = []
    if isinstance(history, dict):
        historical_prices = [
            {"timestamp": timestamp, "price": price} for timestamp, price in history.get("prices", [])
        ]
    else:
        logger.warning("Price history unavailable", symbol=symbol, error=str(history))

    try:
        return {
            "price": format_number(market["current_price"]["usd"]),
            "change_24h": f"{market['price_change_percentage_24h']:.2f}",
            "market_cap": format_large_number(market["market_cap"]["usd"]),
            "volume_24h": format_large_number(market["total_volume"]["usd"]),
            "high_24h": format_number(market["high_24h"]["usd"]),
            "low_24h": format_number(market["low_24h"]["usd"]),
            "last_updated": format_timestamp(current["last_updated"]),
            "crypto_name": current.get("name") or symbol,
            "historical_prices": historical_prices,
        }
    except (KeyError, TypeError, ValueError) as e:
        raise DataFetchError(f"Unexpected CoinGecko payload: {e}") from e


async def geocode(location: str) -> Optional[Dict[str, Any]]:
    """Coordinates and display name for a place name, or None when unknown."""
    data = await get_data_client().get_json(
        GEOCODING_URL, params={"name": location, "count": 1, "language": "en", "format": "json"}
    )
    results = (data or {}).get("results") or []
    if not results:
        return None
    first = results[0]
    return {
        "latitude": first["latitude"],
        "longitude": first["longitude"],
        "name": f"{first['name']}, {first.get('country', '')}".rstrip(", "),
    }


async def fetch_weather(params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Current conditions and today's range from Open-Meteo.

    Args:
        params: ``location`` is a place name, default San Francisco
    """
    location = params.get("location") or DEFAULT_LOCATION
    place = await geocode(location)
    if place is None:
        raise DataFetchError(f"Could not geocode {location}")

    data = await get_data_client().get_json(
        FORECAST_URL,
        params={
            "latitude": place["latitude"],
            "longitude": place["longitude"],
            "current": "temperature_2m,apparent_temperature,relative_humidity_2m,"
            "wind_speed_10m,surface_pressure,weather_code",
            "daily": "temperature_2m_max,temperature_2m_min,sunset,sunrise",
            "timezone": "auto",
        },
    )
    current = (data or {}).get("current")
    daily = (data or {}).get("daily") or {}
    if not current:
        raise DataFetchError("No current weather data available")

    try:
        return {
            "temperature": _whole(current["temperature_2m"]),
            "feels_like": _whole(current["apparent_temperature"]),
            "humidity": _whole(current["relative_humidity_2m"]),
            "wind_speed": _whole(current["wind_speed_10m"]),
            "pressure": _whole(current["surface_pressure"]),
            "description": weather_description(current["weather_code"]),
            "location": place["name"],
            "high_temp": _whole(daily["temperature_2m_max"][0]),
            "low_temp": _whole(daily["temperature_2m_min"][0]),
            "sunrise": format_clock(daily["sunrise"][0]),
            "sunset": format_clock(daily["sunset"][0]),
            "last_updated": format_timestamp(current["time"]),
        }
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise DataFetchError(f"Unexpected Open-Meteo payload: {e}") from e


async def fetch_wikipedia(params: Dict[str, Any]) -> Dict[str, Any]:
    """A random article summary long enough to fill the screen."""
    data = await get_data_client().get_json(WIKIPEDIA_RANDOM_URL)
    extract = (data or {}).get("extract") or ""
    if len(extract) < MIN_EXTRACT_LENGTH:
        raise DataFetchError("Random article too short")

    return {
        "title": data.get("title") or "Unknown Title",
        "extract": extract,
        "description": data.get("description") or "",
        "thumbnail": (data.get("thumbnail") or {}).get("source"),
        "url": ((data.get("content_urls") or {}).get("desktop") or {}).get("page"),
    }
