"""Altitude crossing searches: rise/set and twilight times."""

import datetime
import math

import numpy as np

from stargazer.util.format import as_utc
from stargazer.util.geo import Coordinates

from .astro import datetime_from_days, days_since_j2000
from .position import altitude_deg
from .types import SunMoonTimes

RISE = 1
SET = -1

HORIZON_DEG = -0.833
CIVIL_DEG = -6.0
NAUTICAL_DEG = -12.0
ASTRONOMICAL_DEG = -18.0

SAMPLE_STEP_DAYS = 10.0 / (24 * 60)
TOLERANCE_DAYS = 1.0 / 86400

# hours after local midnight used when a sun event cannot be found
SUN_FALLBACK_HOURS = {
    "sunrise": 6.5,
    "sunset": 18.0,
    "civil_dawn": 6.0,
    "civil_dusk": 18.5,
    "nautical_dawn": 5.5,
    "nautical_dusk": 19.0,
    "astronomical_dawn": 5.0,
    "astronomical_dusk": 19.5,
}

_SUN_EVENTS = (
    ("sunrise", RISE, HORIZON_DEG),
    ("sunset", SET, HORIZON_DEG),
    ("civil_dawn", RISE, CIVIL_DEG),
    ("civil_dusk", SET, CIVIL_DEG),
    ("nautical_dawn", RISE, NAUTICAL_DEG),
    ("nautical_dusk", SET, NAUTICAL_DEG),
    ("astronomical_dawn", RISE, ASTRONOMICAL_DEG),
    ("astronomical_dusk", SET, ASTRONOMICAL_DEG),
)


def search_altitude(
    body: str,
    coords: Coordinates,
    direction: int,
    start: datetime.datetime,
    limit_days: float,
    altitude: float,
) -> datetime.datetime | None:
    """First instant in [start, start + limit_days] where ``body`` crosses ``altitude``.

    ``direction`` is RISE (+1) for an ascending crossing or SET (-1) for a
    descending one. Returns None when the body never crosses in the window.
    """
    if limit_days <= 0:
        return None
    d0 = days_since_j2000(start)
    steps = max(1, int(math.ceil(limit_days / SAMPLE_STEP_DAYS)))
    ds = np.linspace(d0, d0 + limit_days, steps + 1)
    above = altitude_deg(body, coords, ds) >= altitude

    if direction > 0:
        hits = np.nonzero(~above[:-1] & above[1:])[0]
    else:
        hits = np.nonzero(above[:-1] & ~above[1:])[0]
    if hits.size == 0:
        return None

    i = int(hits[0])
    lo = float(ds[i])
    hi = float(ds[i + 1])
    lo_above = bool(above[i])
    while hi - lo > TOLERANCE_DAYS:
        mid = (lo + hi) / 2.0
        if bool(altitude_deg(body, coords, mid) >= altitude) == lo_above:
            lo = mid
        else:
            hi = mid
    return datetime_from_days(hi)


def local_midnight(when: datetime.datetime, longitude_deg: float) -> datetime.datetime:
    """Start of the observer's local mean-solar day containing ``when``, in UTC."""
    offset = datetime.timedelta(hours=longitude_deg / 15.0)
    local = as_utc(when) + offset
    return local.replace(hour=0, minute=0, second=0, microsecond=0) - offset


def sun_times(coords: Coordinates, when: datetime.datetime) -> SunMoonTimes:
    """Raw sun events for the local day; any field may be None."""
    start = local_midnight(when, coords.lng)
    times = SunMoonTimes()
    for field, direction, alt in _SUN_EVENTS:
        setattr(times, field, search_altitude("sun", coords, direction, start, 1.0, alt))
    return times


def moon_times(coords: Coordinates, when: datetime.datetime) -> tuple[datetime.datetime | None, datetime.datetime | None]:
    start = local_midnight(when, coords.lng)
    moonrise = search_altitude("moon", coords, RISE, start, 1.0, HORIZON_DEG)
    moonset = search_altitude("moon", coords, SET, start, 1.0, HORIZON_DEG)
    return moonrise, moonset


def calculate_sun_moon_times(coords: Coordinates, when: datetime.datetime | None = None) -> SunMoonTimes:
    when = when or datetime.datetime.now(datetime.timezone.utc)
    times = sun_times(coords, when)
    midnight = local_midnight(when, coords.lng)
    for field, hours in SUN_FALLBACK_HOURS.items():
        if getattr(times, field) is None:
            setattr(times, field, midnight + datetime.timedelta(hours=hours))
    times.moonrise, times.moonset = moon_times(coords, when)
    return times


def find_next_rise(
    body: str,
    coords: Coordinates,
    min_altitude: float = 0.0,
    start: datetime.datetime | None = None,
    limit_days: float = 7.0,
) -> datetime.datetime | None:
    start = start or datetime.datetime.now(datetime.timezone.utc)
    return search_altitude(body, coords, RISE, start, limit_days, min_altitude)
