"""ISS pass predictions and live position."""

import datetime

import aiohttp

from stargazer.config import Config
from stargazer.errors import ProviderError
from stargazer.ratelimit import RateLimiter
from stargazer.util.geo import Coordinates, clamp

from .base import Provider, ProviderChain, get_json
from .types import IssPass, IssPosition


ISS_NORAD_ID = 25544
N2YO_BASE_URL = "https://api.n2yo.com/rest/v1/satellite"
OPEN_NOTIFY_PASSES_URL = "http://api.open-notify.org/iss-pass.json"
OPEN_NOTIFY_POSITION_URL = "http://api.open-notify.org/iss-now.json"
WHERE_THE_ISS_URL = f"https://api.wheretheiss.at/v1/satellites/{ISS_NORAD_ID}"

DEFAULT_PASS_COUNT = 5
DEFAULT_MIN_ALTITUDE_DEG = 10
MAX_PASS_COUNT = 10

# Open Notify returns only rise time and duration
COARSE_MAX_ALTITUDE_DEG = 45.0

MEAN_ALTITUDE_KM = 420.0
MEAN_VELOCITY_KMH = 27600.0


def brightness_from_magnitude(magnitude: float) -> str:
    if magnitude <= -2:
        return "visible"
    if magnitude <= 0:
        return "possibly-visible"
    return "not-visible"


def _from_timestamp(value: float) -> datetime.datetime:
    return datetime.datetime.fromtimestamp(float(value), tz=datetime.timezone.utc)


class N2yoPassProvider(Provider[list[IssPass]]):
    name = "n2yo"

    def __init__(self, api_key: str | None, timeout_s: float = 10.0):
        self.api_key = api_key
        self.timeout_s = timeout_s

    async def fetch(
        self,
        session: aiohttp.ClientSession,
        coords: Coordinates,
        count: int,
        min_altitude: float,
    ) -> list[IssPass]:
        if not self.api_key:
            raise ProviderError("N2YO_API_KEY not configured")
        url = (
            f"{N2YO_BASE_URL}/visualpasses/{ISS_NORAD_ID}/{coords.lat}/{coords.lng}"
            f"/0/{count}/{int(min_altitude)}"
        )
        data = await get_json(session, url, params={"apiKey": self.api_key}, timeout_s=self.timeout_s)
        if "error" in data:
            raise ProviderError(f"N2YO error: {data['error']}")
        passes = []
        for item in data.get("passes") or []:
            passes.append(
                IssPass(
                    risetime=_from_timestamp(item["startUTC"]),
                    duration=int(item["duration"]),
                    rise_azimuth=float(item["startAz"]),
                    max_altitude=float(item["maxEl"]),
                    set_azimuth=float(item["endAz"]),
                    brightness=brightness_from_magnitude(float(item["mag"])),
                )
            )
        return passes


class OpenNotifyPassProvider(Provider[list[IssPass]]):
    name = "open-notify"

    def __init__(self, timeout_s: float = 10.0):
        self.timeout_s = timeout_s

    async def fetch(
        self,
        session: aiohttp.ClientSession,
        coords: Coordinates,
        count: int,
        min_altitude: float,
    ) -> list[IssPass]:
        params = {"lat": coords.lat, "lon": coords.lng, "n": count}
        data = await get_json(session, OPEN_NOTIFY_PASSES_URL, params=params, timeout_s=self.timeout_s)
        if data.get("message") != "success" or data.get("response") is None:
            raise ProviderError("Invalid Open Notify pass response")
        return [
            IssPass(
                risetime=_from_timestamp(item["risetime"]),
                duration=int(item["duration"]),
                rise_azimuth=0.0,
                max_altitude=COARSE_MAX_ALTITUDE_DEG,
                set_azimuth=0.0,
                brightness="possibly-visible",
            )
            for item in data["response"]
        ]


class OpenNotifyPositionProvider(Provider[IssPosition | None]):
    name = "open-notify"

    def __init__(self, timeout_s: float = 5.0):
        self.timeout_s = timeout_s

    async def fetch(self, session: aiohttp.ClientSession) -> IssPosition | None:
        data = await get_json(session, OPEN_NOTIFY_POSITION_URL, timeout_s=self.timeout_s)
        position = data.get("iss_position")
        if data.get("message") != "success" or not position:
            raise ProviderError("Invalid Open Notify position response")
        timestamp = data.get("timestamp")
        return IssPosition(
            latitude=float(position["latitude"]),
            longitude=float(position["longitude"]),
            altitude=MEAN_ALTITUDE_KM,
            velocity=MEAN_VELOCITY_KMH,
            timestamp=_from_timestamp(timestamp) if timestamp is not None else datetime.datetime.now(datetime.timezone.utc),
            source=self.name,
        )


class WhereTheIssProvider(Provider[IssPosition | None]):
    name = "wheretheiss"

    def __init__(self, timeout_s: float = 5.0):
        self.timeout_s = timeout_s

    async def fetch(self, session: aiohttp.ClientSession) -> IssPosition | None:
        data = await get_json(session, WHERE_THE_ISS_URL, timeout_s=self.timeout_s)
        return IssPosition(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            altitude=float(data.get("altitude", MEAN_ALTITUDE_KM)),
            velocity=float(data.get("velocity", MEAN_VELOCITY_KMH)),
            timestamp=_from_timestamp(data["timestamp"]),
            source=self.name,
        )


def pass_chain(config: Config, limiter: RateLimiter | None = None) -> ProviderChain[list[IssPass]]:
    providers: list[Provider[list[IssPass]]] = []
    if config.n2yo_api_key:
        providers.append(N2yoPassProvider(config.n2yo_api_key, timeout_s=config.iss_timeout_s))
    providers.append(OpenNotifyPassProvider(timeout_s=config.iss_timeout_s))
    return ProviderChain(
        "iss-passes",
        providers,
        list,
        limiter=limiter,
        limit=config.provider_rate_limit,
        window_s=config.rate_limit_window_s,
    )


def position_chain(config: Config, limiter: RateLimiter | None = None) -> ProviderChain[IssPosition | None]:
    return ProviderChain(
        "iss-position",
        [OpenNotifyPositionProvider(), WhereTheIssProvider()],
        lambda: None,
        limiter=limiter,
        limit=config.provider_rate_limit,
        window_s=config.rate_limit_window_s,
    )


async def fetch_iss_passes(
    session: aiohttp.ClientSession,
    coords: Coordinates,
    config: Config,
    *,
    count: int = DEFAULT_PASS_COUNT,
    min_altitude: float = DEFAULT_MIN_ALTITUDE_DEG,
    limiter: RateLimiter | None = None,
) -> list[IssPass]:
    count = int(clamp(count, 1, MAX_PASS_COUNT))
    passes = await pass_chain(config, limiter).fetch(session, coords, count, min_altitude)
    return passes[:count]


async def fetch_iss_position(
    session: aiohttp.ClientSession,
    config: Config,
    limiter: RateLimiter | None = None,
) -> IssPosition | None:
    return await position_chain(config, limiter).fetch(session)
