import os
from pathlib import Path
from typing import TYPE_CHECKING

from stargazer.errors import ConfigError
from stargazer.ratelimit import RATE_LIMITS

if TYPE_CHECKING:
    import tomli as tomllib
else:
    try:
        import tomllib
    except ModuleNotFoundError:  # Python < 3.11
        import tomli as tomllib

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "stargazer" / "config.toml"

# Las Vegas
DEFAULT_LATITUDE_DEG = 36.1147
DEFAULT_LONGITUDE_DEG = -115.1728

WEATHER_PROVIDERS = ("auto", "openweather", "openmeteo")
PLANET_SOURCES = ("local", "horizons")


class Config:
    def __init__(self, data: dict, environ: dict | None = None):
        self._data = data
        self._environ = os.environ if environ is None else environ

    def _section(self, name: str) -> dict:
        return self._data.get(name, {}) or {}

    def _env(self, name: str) -> str | None:
        value = self._environ.get(name)
        if value is None:
            return None
        value = value.strip()
        return value or None

    @property
    def site_latitude_deg(self) -> float:
        return float(self._section("site").get("latitude_deg", DEFAULT_LATITUDE_DEG))

    @property
    def site_longitude_deg(self) -> float:
        return float(self._section("site").get("longitude_deg", DEFAULT_LONGITUDE_DEG))

    @property
    def site_elevation_m(self):
        return self._section("site").get("elevation_m", None)

    @property
    def weather_provider(self) -> str:
        provider = self._env("WEATHER_API_PROVIDER") or self._section("weather").get("provider", "auto")
        provider = str(provider).lower()
        if provider not in WEATHER_PROVIDERS:
            return "auto"
        return provider

    @property
    def openweather_api_key(self) -> str | None:
        return self._env("OPENWEATHER_API_KEY") or self._section("weather").get("openweather_api_key") or None

    @property
    def weather_timeout_s(self) -> float:
        return float(self._section("weather").get("timeout_s", 10.0))

    @property
    def n2yo_api_key(self) -> str | None:
        return self._env("N2YO_API_KEY") or self._section("iss").get("n2yo_api_key") or None

    @property
    def iss_timeout_s(self) -> float:
        return float(self._section("iss").get("timeout_s", 10.0))

    @property
    def iss_pass_count(self) -> int:
        return int(self._section("iss").get("pass_count", 3))

    @property
    def aurora_timeout_s(self) -> float:
        return float(self._section("aurora").get("timeout_s", 10.0))

    @property
    def planets_source(self) -> str:
        source = str(self._section("planets").get("source", "local")).lower()
        if source not in PLANET_SOURCES:
            return "local"
        return source

    @property
    def planets_timeout_s(self) -> float:
        return float(self._section("planets").get("timeout_s", 7.0))

    @property
    def planets_window_hours(self) -> int:
        return int(self._section("planets").get("window_hours", 8))

    @property
    def planets_min_altitude_deg(self) -> float:
        return float(self._section("planets").get("min_altitude_deg", 15.0))

    @property
    def cache_max_entries(self) -> int:
        return int(self._section("cache").get("max_entries", 1000))

    @property
    def cache_cleanup_interval_s(self) -> float:
        return float(self._section("cache").get("cleanup_interval_s", 300.0))

    @property
    def planner_ttl_s(self) -> float:
        return float(self._section("cache").get("planner_ttl_s", 600.0))

    @property
    def rate_limit(self) -> int:
        return int(self._section("rate_limit").get("limit", RATE_LIMITS["external_api"].limit))

    @property
    def rate_limit_window_s(self) -> float:
        return float(self._section("rate_limit").get("window_s", RATE_LIMITS["external_api"].window_s))

    @property
    def provider_rate_limit(self) -> int:
        return int(self._section("rate_limit").get("provider_limit", RATE_LIMITS["provider"].limit))

    @property
    def log_level(self) -> str | None:
        return self._section("logging").get("level", None)

    def validate(self) -> list[str]:
        warnings: list[str] = []
        if self.weather_provider == "openweather" and not self.openweather_api_key:
            warnings.append("OPENWEATHER_API_KEY is not set - live weather falls back to Open-Meteo")
        if not self.n2yo_api_key:
            warnings.append("N2YO_API_KEY is not set - ISS passes use Open Notify (no pass geometry)")
        return warnings


def load_config(path: Path | None = None) -> Config:
    explicit_path = path
    path = path or DEFAULT_CONFIG_PATH

    if not path.exists():
        if explicit_path is not None:
            raise FileNotFoundError(f"Config file not found: {path}")
        # Return default config if default file missing
        return Config({})

    with open(path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid config file {path}: {e}") from e

    return Config(data)
