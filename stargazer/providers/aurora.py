"""Aurora outlook from the NOAA SWPC planetary Kp index."""

import asyncio
import datetime
import logging
import math

import aiohttp

from stargazer.config import Config
from stargazer.errors import ProviderError
from stargazer.ratelimit import RateLimiter
from stargazer.util.format import round_half_up
from stargazer.util.geo import Coordinates

from .base import PROVIDER_ERRORS, Provider, ProviderChain, get_json
from .types import AuroraForecast, KpReading

logger = logging.getLogger(__name__)

NOAA_KP_URL = "https://services.swpc.noaa.gov/products/noaa-planetary-k-index.json"
NOAA_KP_FORECAST_URL = "https://services.swpc.noaa.gov/products/noaa-planetary-k-index-forecast.json"

ESTIMATED_SOURCE = "estimated"
ESTIMATED_KP = 2.0
ESTIMATED_DESCRIPTION = "Unable to fetch current data - assuming quiet conditions"
# 3-hour periods, three days ahead
FORECAST_PERIODS = 12

# NOAA G-scale
STORM_THRESHOLDS = (
    (9, "extreme"),
    (8, "severe"),
    (7, "strong"),
    (6, "moderate"),
    (5, "minor"),
)
STORM_DESCRIPTIONS = (
    (9, "Extreme geomagnetic storm (G5) - Aurora visible at very low latitudes"),
    (8, "Severe geomagnetic storm (G4) - Aurora visible in mid-latitudes"),
    (7, "Strong geomagnetic storm (G3) - Aurora possible at mid-latitudes"),
    (6, "Moderate geomagnetic storm (G2) - Enhanced aurora activity"),
    (5, "Minor geomagnetic storm (G1) - Aurora visible at high latitudes"),
    (4, "Active conditions - Aurora possible at high latitudes"),
    (3, "Unsettled conditions - Aurora at polar regions"),
)
QUIET_DESCRIPTION = "Quiet conditions - Aurora limited to polar regions"

# (degrees beyond the auroral boundary, probability, message)
VISIBILITY_BANDS = (
    (10, "high", "Excellent aurora viewing conditions for your latitude"),
    (5, "likely", "Good chance of aurora visibility"),
    (0, "possible", "Aurora may be visible on the poleward horizon"),
    (-5, "unlikely", "Aurora unlikely but possible during strong activity"),
)
NO_VISIBILITY = ("none", "Too far from the pole for aurora at current activity levels")


def storm_level(kp: float) -> str:
    for threshold, level in STORM_THRESHOLDS:
        if kp >= threshold:
            return level
    return "none"


def storm_description(kp: float) -> str:
    for threshold, text in STORM_DESCRIPTIONS:
        if kp >= threshold:
            return text
    return QUIET_DESCRIPTION


def minimum_latitude(kp: float) -> int:
    """Rough equatorward edge of aurora visibility, ~67° at Kp 0 down to ~40° at Kp 9."""
    return max(30, round_half_up(67 - kp * 3))


def visibility(kp: float, latitude: float) -> tuple[str, int, str]:
    min_lat = minimum_latitude(kp)
    margin = abs(latitude) - min_lat
    for band, probability, message in VISIBILITY_BANDS:
        if margin >= band:
            return probability, min_lat, message
    return NO_VISIBILITY[0], min_lat, NO_VISIBILITY[1]


def _parse_kp(value) -> float | None:
    try:
        kp = float(value)
    except (TypeError, ValueError):
        return None
    return kp if math.isfinite(kp) else None


def parse_current_kp(rows) -> float:
    """Latest Kp from NOAA's table rows; the first row is a header."""
    if not isinstance(rows, list) or len(rows) < 2:
        return ESTIMATED_KP
    latest = rows[-1]
    kp = _parse_kp(latest[1]) if len(latest) > 1 else None
    if kp is None:
        return ESTIMATED_KP
    return round_half_up(kp * 10) / 10


def parse_forecast(rows) -> list[KpReading]:
    if not isinstance(rows, list) or len(rows) < 2:
        return []
    readings = []
    for row in rows[1 : FORECAST_PERIODS + 1]:
        if len(row) < 3:
            continue
        kp = _parse_kp(row[1])
        readings.append(
            KpReading(
                time=str(row[0]),
                kp=ESTIMATED_KP if kp is None else kp,
                observed=row[2] == "observed",
            )
        )
    return readings


def build_aurora_forecast(
    kp: float,
    latitude: float,
    *,
    source: str,
    forecast: list[KpReading] | None = None,
    description: str | None = None,
    now: datetime.datetime | None = None,
) -> AuroraForecast:
    probability, min_lat, message = visibility(kp, latitude)
    return AuroraForecast(
        kp=kp,
        storm_level=storm_level(kp),
        description=description or storm_description(kp),
        probability=probability,
        minimum_latitude=min_lat,
        message=message,
        source=source,
        fetched_at=now or datetime.datetime.now(datetime.timezone.utc),
        forecast=list(forecast or []),
    )


def estimated_aurora_forecast(latitude: float, now: datetime.datetime | None = None) -> AuroraForecast:
    return build_aurora_forecast(
        ESTIMATED_KP,
        latitude,
        source=ESTIMATED_SOURCE,
        description=ESTIMATED_DESCRIPTION,
        now=now,
    )


class NoaaKpProvider(Provider[AuroraForecast]):
    name = "noaa"

    def __init__(self, timeout_s: float = 10.0):
        self.timeout_s = timeout_s

    async def _forecast(self, session: aiohttp.ClientSession) -> list[KpReading]:
        try:
            rows = await get_json(session, NOAA_KP_FORECAST_URL, timeout_s=self.timeout_s)
        except PROVIDER_ERRORS as e:
            logger.debug("Kp forecast unavailable: %s", e)
            return []
        return parse_forecast(rows)

    async def fetch(self, session: aiohttp.ClientSession, coords: Coordinates) -> AuroraForecast:
        rows, forecast = await asyncio.gather(
            get_json(session, NOAA_KP_URL, timeout_s=self.timeout_s),
            self._forecast(session),
        )
        if not isinstance(rows, list):
            raise ProviderError("NOAA Kp response is not a table")
        return build_aurora_forecast(parse_current_kp(rows), coords.lat, source=self.name, forecast=forecast)


def aurora_chain(
    config: Config,
    coords: Coordinates,
    limiter: RateLimiter | None = None,
) -> ProviderChain[AuroraForecast]:
    return ProviderChain(
        "aurora",
        [NoaaKpProvider(timeout_s=config.aurora_timeout_s)],
        lambda: estimated_aurora_forecast(coords.lat),
        limiter=limiter,
        limit=config.provider_rate_limit,
        window_s=config.rate_limit_window_s,
    )


async def fetch_aurora_forecast(
    session: aiohttp.ClientSession,
    coords: Coordinates,
    config: Config,
    limiter: RateLimiter | None = None,
) -> AuroraForecast:
    forecast = await aurora_chain(config, coords, limiter).fetch(session, coords)
    logger.debug("Aurora Kp %.1f (%s) from %s", forecast.kp, forecast.probability, forecast.source)
    return forecast
