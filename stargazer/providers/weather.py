"""Sky quality from current weather: OpenWeather, Open-Meteo, then an estimate."""

import logging

import aiohttp

from stargazer.config import Config
from stargazer.errors import ProviderError
from stargazer.ratelimit import RateLimiter
from stargazer.util.format import round_half_up
from stargazer.util.geo import Coordinates

from .base import Provider, ProviderChain, get_json
from .types import SkyQuality

logger = logging.getLogger(__name__)

OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
OPENMETEO_URL = "https://api.open-meteo.com/v1/forecast"

ESTIMATED_SOURCE = "estimated"
ESTIMATED_CLOUD_COVER = 45.0
ESTIMATED_HUMIDITY = 55.0
ESTIMATED_WIND_KMH = 8.0
ESTIMATED_TEMPERATURE_C = 15.0


def calculate_quality(cloud_cover: float, humidity: float, wind_speed: float) -> int:
    cloud_score = 100 - cloud_cover
    humidity_score = max(0.0, 100 - humidity)
    # calm air up to ~15 km/h, worse above
    wind_score = max(0.0, 100 - min(100.0, wind_speed * 2))
    return round_half_up(cloud_score * 0.6 + humidity_score * 0.2 + wind_score * 0.2)


def seeing_condition(wind_speed: float, humidity: float) -> str:
    if wind_speed > 30 or humidity > 80:
        return "poor"
    if wind_speed > 20 or humidity > 70:
        return "fair"
    if wind_speed > 10 or humidity > 60:
        return "good"
    return "excellent"


def build_sky_quality(
    *,
    cloud_cover: float,
    humidity: float,
    wind_speed: float,
    temperature: float,
    source: str,
) -> SkyQuality:
    return SkyQuality(
        cloud_cover=cloud_cover,
        humidity=humidity,
        wind_speed=wind_speed,
        temperature=temperature,
        transparency=100 - cloud_cover,
        quality=calculate_quality(cloud_cover, humidity, wind_speed),
        seeing=seeing_condition(wind_speed, humidity),
        source=source,
    )


def estimated_sky_quality() -> SkyQuality:
    return build_sky_quality(
        cloud_cover=ESTIMATED_CLOUD_COVER,
        humidity=ESTIMATED_HUMIDITY,
        wind_speed=ESTIMATED_WIND_KMH,
        temperature=ESTIMATED_TEMPERATURE_C,
        source=ESTIMATED_SOURCE,
    )


class OpenWeatherProvider(Provider[SkyQuality]):
    name = "openweather"

    def __init__(self, api_key: str | None, timeout_s: float = 10.0):
        self.api_key = api_key
        self.timeout_s = timeout_s

    async def fetch(self, session: aiohttp.ClientSession, coords: Coordinates) -> SkyQuality:
        if not self.api_key:
            raise ProviderError("OPENWEATHER_API_KEY not configured")
        params = {
            "lat": coords.lat,
            "lon": coords.lng,
            "appid": self.api_key,
            "units": "metric",
        }
        data = await get_json(session, OPENWEATHER_URL, params=params, timeout_s=self.timeout_s)
        clouds = data.get("clouds") or {}
        main = data.get("main") or {}
        wind = data.get("wind") or {}
        return build_sky_quality(
            cloud_cover=float(clouds.get("all", 50)),
            humidity=float(main.get("humidity", 50)),
            # m/s to km/h
            wind_speed=float(wind.get("speed", 0)) * 3.6,
            temperature=float(main.get("temp", ESTIMATED_TEMPERATURE_C)),
            source=self.name,
        )


class OpenMeteoProvider(Provider[SkyQuality]):
    name = "openmeteo"

    def __init__(self, timeout_s: float = 10.0):
        self.timeout_s = timeout_s

    async def fetch(self, session: aiohttp.ClientSession, coords: Coordinates) -> SkyQuality:
        params = {
            "latitude": coords.lat,
            "longitude": coords.lng,
            "current": "cloud_cover,relative_humidity_2m,wind_speed_10m,temperature_2m",
        }
        data = await get_json(session, OPENMETEO_URL, params=params, timeout_s=self.timeout_s)
        current = data.get("current")
        if not current:
            raise ProviderError("Open-Meteo response has no current conditions")
        return build_sky_quality(
            cloud_cover=float(current["cloud_cover"]),
            humidity=float(current["relative_humidity_2m"]),
            wind_speed=float(current["wind_speed_10m"]),
            temperature=float(current["temperature_2m"]),
            source=self.name,
        )


def weather_providers(config: Config) -> list[Provider[SkyQuality]]:
    timeout_s = config.weather_timeout_s
    key = config.openweather_api_key
    selected = config.weather_provider
    openmeteo = OpenMeteoProvider(timeout_s=timeout_s)
    if selected == "openmeteo":
        return [openmeteo]
    if selected == "openweather" or key:
        return [OpenWeatherProvider(key, timeout_s=timeout_s), openmeteo]
    return [openmeteo]


def weather_chain(config: Config, limiter: RateLimiter | None = None) -> ProviderChain[SkyQuality]:
    return ProviderChain(
        "weather",
        weather_providers(config),
        estimated_sky_quality,
        limiter=limiter,
        limit=config.provider_rate_limit,
        window_s=config.rate_limit_window_s,
    )


async def fetch_sky_quality(
    session: aiohttp.ClientSession,
    coords: Coordinates,
    config: Config,
    limiter: RateLimiter | None = None,
) -> SkyQuality:
    quality = await weather_chain(config, limiter).fetch(session, coords)
    logger.debug("Sky quality %d from %s", quality.quality, quality.source)
    return quality
