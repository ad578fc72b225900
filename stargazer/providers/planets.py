"""Tonight's naked-eye planets: JPL Horizons observer tables or the local ephemeris."""

import asyncio
import datetime
import math
from typing import Sequence

import aiohttp
import numpy as np

from stargazer.config import Config
from stargazer.ephemeris.astro import days_since_j2000
from stargazer.ephemeris.position import altitude_deg
from stargazer.errors import ProviderError
from stargazer.ratelimit import RateLimiter
from stargazer.util.format import as_utc, round_half_up
from stargazer.util.geo import Coordinates

from .base import Provider, ProviderChain, get_json
from .types import VisiblePlanet

HORIZONS_URL = "https://ssd.jpl.nasa.gov/api/horizons.api"
HORIZONS_TIMEOUT_S = 15.0

# (body, display name, Horizons COMMAND id)
PLANET_TARGETS = (
    ("jupiter", "Jupiter", "599"),
    ("venus", "Venus", "299"),
    ("saturn", "Saturn", "699"),
    ("mars", "Mars", "499"),
)

PLANET_TYPE = "Planet"
DEFAULT_WINDOW_HOURS = 8
DEFAULT_MIN_ALTITUDE_DEG = 15.0


def _horizons_time(dt: datetime.datetime) -> str:
    return f"'{as_utc(dt):%Y-%m-%d %H:%M}'"


def horizons_params(command: str, coords: Coordinates, start: datetime.datetime, stop: datetime.datetime) -> dict:
    return {
        "format": "json",
        "COMMAND": f"'{command}'",
        "OBJ_DATA": "NO",
        "MAKE_EPHEM": "YES",
        "EPHEM_TYPE": "OBSERVER",
        "CENTER": "'coord@399'",
        "COORD_TYPE": "GEODETIC",
        "SITE_COORD": f"'{coords.lng:.5f},{coords.lat:.5f},0'",
        "START_TIME": _horizons_time(start),
        "STOP_TIME": _horizons_time(stop),
        "STEP_SIZE": "'1 h'",
        "QUANTITIES": "'4'",
        "CSV_FORMAT": "YES",
        "TIME_TYPE": "UT",
    }


def extract_csv_lines(result: str) -> list[str]:
    start = result.find("$$SOE")
    end = result.find("$$EOE")
    if start == -1 or end == -1:
        return []
    return [line.strip() for line in result[start + 5:end].splitlines() if line.strip()]


def _parse_horizons_time(label: str) -> datetime.datetime | None:
    for fmt in ("%Y-%b-%d %H:%M", "%Y-%b-%d %H:%M:%S"):
        try:
            return datetime.datetime.strptime(label, fmt).replace(tzinfo=datetime.timezone.utc)
        except ValueError:
            continue
    return None


def parse_observer_csv(lines: Sequence[str]) -> list[tuple[str, float, float]]:
    """(time label, azimuth, elevation) rows; the last two numeric columns are az/el."""
    points = []
    for line in lines:
        columns = [c.strip() for c in line.split(",")]
        numeric = []
        for value in columns[1:]:
            try:
                number = float(value)
            except ValueError:
                continue
            if math.isfinite(number):
                numeric.append(number)
        if len(numeric) < 2:
            continue
        points.append((columns[0], numeric[-2], numeric[-1]))
    return points


def _best_planet(
    name: str,
    samples: Sequence[tuple[datetime.datetime, float]],
    min_altitude: float,
    source: str,
) -> VisiblePlanet | None:
    if not samples:
        return None
    best_time, best_alt = max(samples, key=lambda s: s[1])
    return VisiblePlanet(
        name=name,
        type=PLANET_TYPE,
        best_altitude=round_half_up(best_alt),
        best_time=best_time,
        visible=best_alt > min_altitude,
        source=source,
    )


class HorizonsProvider(Provider[VisiblePlanet | None]):
    name = "horizons"

    def __init__(self, timeout_s: float = HORIZONS_TIMEOUT_S):
        self.timeout_s = timeout_s

    async def fetch(
        self,
        session: aiohttp.ClientSession,
        target: tuple[str, str, str],
        coords: Coordinates,
        start: datetime.datetime,
        window_hours: int,
        min_altitude: float,
    ) -> VisiblePlanet | None:
        _, name, command = target
        stop = start + datetime.timedelta(hours=window_hours)
        payload = await get_json(
            session,
            HORIZONS_URL,
            params=horizons_params(command, coords, start, stop),
            timeout_s=self.timeout_s,
        )
        if payload.get("error"):
            raise ProviderError(f"Horizons: {payload['error']}")
        points = parse_observer_csv(extract_csv_lines(payload.get("result") or ""))
        if not points:
            raise ProviderError(f"Horizons returned no ephemeris rows for {name}")
        samples = []
        for index, (label, _, elevation) in enumerate(points):
            when = _parse_horizons_time(label) or start + datetime.timedelta(hours=index)
            samples.append((when, elevation))
        return _best_planet(name, samples, min_altitude, self.name)


class LocalEphemerisProvider(Provider[VisiblePlanet | None]):
    name = "local"
    timeout_s = 5.0
    rate_limited = False

    async def fetch(
        self,
        session: aiohttp.ClientSession,
        target: tuple[str, str, str],
        coords: Coordinates,
        start: datetime.datetime,
        window_hours: int,
        min_altitude: float,
    ) -> VisiblePlanet | None:
        body, name, _ = target
        times = [start + datetime.timedelta(hours=h) for h in range(window_hours + 1)]
        d = np.array([days_since_j2000(t) for t in times])
        altitudes = altitude_deg(body, coords, d)
        samples = [(t, float(a)) for t, a in zip(times, altitudes)]
        return _best_planet(name, samples, min_altitude, self.name)


def planet_chain(config: Config, limiter: RateLimiter | None = None) -> ProviderChain[VisiblePlanet | None]:
    providers: list[Provider[VisiblePlanet | None]] = []
    if config.planets_source == "horizons":
        providers.append(HorizonsProvider(timeout_s=config.planets_timeout_s))
    providers.append(LocalEphemerisProvider())
    return ProviderChain(
        "planets",
        providers,
        lambda: None,
        limiter=limiter,
        limit=config.provider_rate_limit,
        window_s=config.rate_limit_window_s,
    )


async def fetch_visible_planets(
    session: aiohttp.ClientSession,
    coords: Coordinates,
    config: Config,
    start: datetime.datetime | None = None,
    limiter: RateLimiter | None = None,
) -> list[VisiblePlanet]:
    start = as_utc(start or datetime.datetime.now(datetime.timezone.utc))
    chain = planet_chain(config, limiter)
    results = await asyncio.gather(
        *[
            chain.fetch(
                session,
                target,
                coords,
                start,
                config.planets_window_hours,
                config.planets_min_altitude_deg,
            )
            for target in PLANET_TARGETS
        ]
    )
    return [planet for planet in results if planet is not None and planet.visible]
