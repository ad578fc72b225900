import asyncio
import datetime
import logging
from typing import Callable, Mapping

import aiohttp

from stargazer.cache import BoundedCache
from stargazer.config import Config
from stargazer.ephemeris.moon import calculate_moon_phase
from stargazer.ephemeris.search import calculate_sun_moon_times
from stargazer.errors import RateLimitExceeded
from stargazer.providers.aurora import estimated_aurora_forecast, fetch_aurora_forecast
from stargazer.providers.base import settle
from stargazer.providers.darksky import estimate_dark_sky_score
from stargazer.providers.iss import fetch_iss_passes
from stargazer.providers.planets import fetch_visible_planets
from stargazer.providers.types import IssPass, SkyQuality, VisiblePlanet
from stargazer.providers.weather import fetch_sky_quality
from stargazer.ratelimit import RateLimiter, rate_limit_key
from stargazer.util.format import as_utc, format_pass_time, round_half_up
from stargazer.util.geo import Coordinates

from .catalog import ReferenceCatalog
from .events import get_active_meteor_showers, get_tonight_events
from .inputs import normalize_request
from .types import (
    MeteorShower,
    MoonSummary,
    OverallQuality,
    Recommendation,
    SunSummary,
    TonightPlan,
)
from .visibility import calculate_optimal_window

logger = logging.getLogger(__name__)

CACHE_PREFIX = "planner-tonight"
# outer bound for one fan-out branch; providers carry their own shorter timeouts
BRANCH_TIMEOUT_S = 30.0
FALLBACK_WEATHER_QUALITY = 65
FALLBACK_DARK_SKY_SCORE = 50
CLOUD_CAUTION_PCT = 55
MOON_BRIGHT_PCT = 20

OVERALL_RATINGS = (
    (85, "Exceptional", "Outstanding conditions for all types of observation"),
    (70, "Excellent", "Great conditions for most celestial objects"),
    (55, "Good", "Favorable conditions for bright objects"),
    (40, "Fair", "Challenging but still worthwhile"),
)
POOR_RATING = ("Poor", "Consider observing brighter objects only")


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def calculate_overall_quality(
    *,
    window_quality: float,
    moon_illumination: float,
    dark_sky_score: float,
    weather_quality: float | None = None,
) -> OverallQuality:
    weather = FALLBACK_WEATHER_QUALITY if weather_quality is None else weather_quality
    score = round_half_up(
        window_quality * 0.35
        + (100 - moon_illumination) * 0.25
        + weather * 0.25
        + dark_sky_score * 0.15
    )
    for threshold, rating, description in OVERALL_RATINGS:
        if score >= threshold:
            return OverallQuality(score=score, rating=rating, description=description)
    return OverallQuality(score=score, rating=POOR_RATING[0], description=POOR_RATING[1])


def build_recommendations(
    *,
    moon_name: str,
    moon_illumination: float,
    active_showers: list[MeteorShower],
    visible_planets: list[VisiblePlanet],
    iss_passes: list[IssPass],
    weather: SkyQuality | None,
) -> list[Recommendation]:
    """Rules are evaluated in a fixed order; the output is not re-sorted."""
    recs = []
    if moon_illumination > MOON_BRIGHT_PCT:
        recs.append(
            Recommendation(
                priority="high",
                title=f"Observe the {moon_name}",
                description=f"{round_half_up(moon_illumination)}% illuminated. Great for lunar features.",
                timing="After sunset",
            )
        )
    else:
        recs.append(
            Recommendation(
                priority="high",
                title="Dark sky advantage",
                description="Low moonlight - perfect for deep-sky objects and galaxies.",
                timing="All night",
            )
        )

    if active_showers:
        shower = active_showers[0]
        recs.append(
            Recommendation(
                priority="medium",
                title=f"{shower.name} active",
                description=f"Peak rate: {shower.zhr} meteors/hour. Best after midnight.",
                timing="After midnight",
            )
        )

    if visible_planets:
        count = len(visible_planets)
        recs.append(
            Recommendation(
                priority="medium",
                title=f"{count} planet{'s' if count > 1 else ''} visible",
                description=", ".join(p.name for p in visible_planets),
                timing="Check individual times",
            )
        )

    if iss_passes:
        next_pass = iss_passes[0]
        recs.append(
            Recommendation(
                priority="high",
                title="ISS pass tonight",
                description=(
                    f"Visible for {round_half_up(next_pass.duration / 60)} minutes, "
                    f"reaching {round_half_up(next_pass.max_altitude)}° altitude."
                ),
                timing=format_pass_time(next_pass.risetime, next_pass.duration),
            )
        )

    if weather is not None:
        cloud = round_half_up(weather.cloud_cover)
        if weather.cloud_cover > CLOUD_CAUTION_PCT:
            recs.append(
                Recommendation(
                    priority="medium",
                    title="Cloud cover elevated",
                    description=f"{cloud}% cloud cover. Prioritize brighter targets and lunar features.",
                    timing="Check for short clear windows",
                )
            )
        else:
            recs.append(
                Recommendation(
                    priority="high",
                    title="Weather supports deep-sky viewing",
                    description=f"{cloud}% clouds and {weather.seeing} seeing conditions right now.",
                    timing="Use optimal window",
                )
            )
    return recs


def plan_cache_key(coords: Coordinates, when: datetime.datetime) -> str:
    local_date = (as_utc(when) + datetime.timedelta(hours=coords.lng / 15.0)).date()
    return f"{CACHE_PREFIX}:{coords.lat:.2f}:{coords.lng:.2f}:{local_date.isoformat()}"


class TonightPlanner:
    def __init__(
        self,
        config: Config,
        *,
        cache: BoundedCache | None = None,
        limiter: RateLimiter | None = None,
        session_factory: Callable[[], aiohttp.ClientSession] | None = None,
        clock: Callable[[], datetime.datetime] | None = None,
        catalog: ReferenceCatalog | None = None,
    ):
        self._config = config
        self.cache = cache if cache is not None else BoundedCache(
            max_entries=config.cache_max_entries,
            cleanup_interval_s=config.cache_cleanup_interval_s,
        )
        self.limiter = limiter if limiter is not None else RateLimiter(cleanup_interval_s=config.cache_cleanup_interval_s)
        self._session_factory = session_factory or aiohttp.ClientSession
        self._clock = clock or _utc_now
        self._catalog = catalog

    def default_location(self) -> Coordinates:
        return Coordinates(lat=self._config.site_latitude_deg, lng=self._config.site_longitude_deg)

    async def plan(
        self,
        coords: Coordinates | None = None,
        when: datetime.datetime | None = None,
    ) -> TonightPlan:
        coords = coords or self.default_location()
        when = as_utc(when or self._clock())
        key = plan_cache_key(coords, when)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Planner cache hit: %s", key)
            return cached
        logger.debug("Planner cache miss: %s", key)

        plan = await self._compose(coords, when)
        self.cache.set(key, plan, self._config.planner_ttl_s)
        return plan

    async def plan_for_client(
        self,
        headers: Mapping[str, str],
        lat=None,
        lng=None,
        date=None,
    ) -> TonightPlan:
        result = self.limiter.check(
            rate_limit_key("planner", headers),
            self._config.rate_limit,
            self._config.rate_limit_window_s,
        )
        if not result.allowed:
            raise RateLimitExceeded(result.retry_after_seconds, limit=result.limit)
        request = normalize_request(lat, lng, date, default=self.default_location(), now=self._clock())
        return await self.plan(request.coords, request.when)

    async def _compose(self, coords: Coordinates, when: datetime.datetime) -> TonightPlan:
        config = self._config
        moon = calculate_moon_phase(when)
        window = calculate_optimal_window(coords, when)
        times = calculate_sun_moon_times(coords, when)
        tonight_events = get_tonight_events(coords, when, self._catalog)
        active_showers = get_active_meteor_showers(when, self._catalog)

        async with self._session_factory() as session:
            weather, iss_passes, planets, dark_sky, aurora = await asyncio.gather(
                settle(
                    "weather",
                    fetch_sky_quality(session, coords, config, self.limiter),
                    None,
                    BRANCH_TIMEOUT_S,
                ),
                settle(
                    "iss passes",
                    fetch_iss_passes(session, coords, config, count=config.iss_pass_count, limiter=self.limiter),
                    [],
                    BRANCH_TIMEOUT_S,
                ),
                settle(
                    "visible planets",
                    fetch_visible_planets(session, coords, config, start=window.start, limiter=self.limiter),
                    [],
                    BRANCH_TIMEOUT_S,
                ),
                settle(
                    "dark sky",
                    asyncio.to_thread(estimate_dark_sky_score, coords),
                    FALLBACK_DARK_SKY_SCORE,
                    BRANCH_TIMEOUT_S,
                ),
                settle(
                    "aurora",
                    fetch_aurora_forecast(session, coords, config, self.limiter),
                    estimated_aurora_forecast(coords.lat),
                    BRANCH_TIMEOUT_S,
                ),
            )

        overall = calculate_overall_quality(
            window_quality=window.quality,
            moon_illumination=moon.illumination,
            dark_sky_score=dark_sky,
            weather_quality=weather.quality if weather is not None else None,
        )
        recommendations = build_recommendations(
            moon_name=moon.name,
            moon_illumination=moon.illumination,
            active_showers=active_showers,
            visible_planets=planets,
            iss_passes=iss_passes,
            weather=weather,
        )
        return TonightPlan(
            location=coords,
            date=when,
            moon=MoonSummary(phase=moon, rise=times.moonrise, set=times.moonset),
            sun=SunSummary(
                sunset=times.sunset,
                sunrise=times.sunrise,
                astronomical_dusk=times.astronomical_dusk,
                astronomical_dawn=times.astronomical_dawn,
            ),
            optimal_window=window,
            local_dark_sky_score=dark_sky,
            weather=weather,
            visible_planets=planets,
            tonight_events=tonight_events,
            active_showers=active_showers,
            iss_passes=iss_passes,
            aurora=aurora,
            recommendations=recommendations,
            overall_quality=overall,
            generated_at=as_utc(self._clock()),
            warnings=config.validate(),
        )
