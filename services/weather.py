"""
Destination weather from OpenWeather (geocoding + One Call).

Any failure, including a missing API key, returns an "unavailable" payload
instead of raising, so the trip view never breaks on weather.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx

from config import settings
from schemas import CurrentWeather, DailyWeather, HourlyWeather, WeatherRead
from utils.cache import TTLCache
from utils.logger import setup_api_logger

logger = setup_api_logger()

GEOCODE_URL = "https://api.openweathermap.org/geo/1.0/direct"
ONECALL_URL = "https://api.openweathermap.org/data/3.0/onecall"
WEATHER_TTL = timedelta(minutes=5)
HOURLY_POINTS = 12

UNAVAILABLE = WeatherRead(available=False)


def _local(ts: int, offset: int) -> datetime:
    return datetime.fromtimestamp(ts + offset, tz=timezone.utc)


def _condition(entry: dict) -> tuple[str, str]:
    weather = (entry.get("weather") or [{}])[0]
    return weather.get("description", ""), weather.get("icon", "")


class WeatherProvider:
    def __init__(
        self,
        api_key: str,
        cache: TTLCache,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.cache = cache
        self.timeout = timeout
        self.transport = transport

    async def get_weather(self, destination: str) -> WeatherRead:
        if not self.api_key:
            return UNAVAILABLE

        cache_key = f"weather_{destination}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(GEOCODE_URL, params={"q": destination, "limit": 1, "appid": self.api_key})
                resp.raise_for_status()
                places = resp.json()
                if not places:
                    logger.warning("Weather: location not found for %s", destination)
                    return UNAVAILABLE
                place = places[0]

                resp = await client.get(ONECALL_URL, params={
                    "lat": place["lat"],
                    "lon": place["lon"],
                    "exclude": "minutely,alerts",
                    "units": "metric",
                    "appid": self.api_key,
                })
                resp.raise_for_status()
                data = resp.json()

            offset = data.get("timezone_offset", 0)
            condition, icon = _condition(data["current"])
            hourly = []
            for h in (data.get("hourly") or [])[:HOURLY_POINTS]:
                h_condition, h_icon = _condition(h)
                hourly.append(HourlyWeather(
                    time=_local(h["dt"], offset).strftime("%H:00"),
                    temp=round(h["temp"]),
                    condition=h_condition,
                    icon=h_icon,
                ))
            # next two days, today excluded
            daily = []
            for d in (data.get("daily") or [])[1:3]:
                d_condition, d_icon = _condition(d)
                day = _local(d["dt"], offset)
                daily.append(DailyWeather(
                    date=day.strftime("%d/%m"),
                    day_name=day.strftime("%a"),
                    high=round(d["temp"]["max"]),
                    low=round(d["temp"]["min"]),
                    condition=d_condition,
                    icon=d_icon,
                ))

            result = WeatherRead(
                available=True,
                location=place.get("name") or destination,
                current=CurrentWeather(temperature=round(data["current"]["temp"]), condition=condition, icon=icon),
                hourly=hourly,
                daily=daily,
            )
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning("Weather lookup failed for %s: %s", destination, str(e))
            return UNAVAILABLE

        self.cache.set(cache_key, result, WEATHER_TTL)
        return result


_provider: Optional[WeatherProvider] = None


def get_weather_provider() -> WeatherProvider:
    """FastAPI dependency returning the process-wide provider."""
    global _provider
    if _provider is None:
        if not settings.openweather_api_key:
            logger.warning("OPENWEATHER_API_KEY is not set; weather will be unavailable")
        _provider = WeatherProvider(
            api_key=settings.openweather_api_key,
            cache=TTLCache(),
            timeout=settings.http_timeout_seconds,
        )
    return _provider
