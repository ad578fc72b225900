import datetime
import math

from stargazer.util.format import as_utc

from .astro import datetime_from_days, days_since_j2000, sun_ecliptic
from .types import SeasonInfo

SEASON_EVENTS = (
    ("March Equinox", 0.0, 3),
    ("June Solstice", 90.0, 6),
    ("September Equinox", 180.0, 9),
    ("December Solstice", 270.0, 12),
)


def _longitude_offset_deg(d: float, target_deg: float) -> float:
    lam, _ = sun_ecliptic(d)
    # wrapped into [-180, 180) so the root is a sign change
    return (math.degrees(float(lam)) - target_deg + 180.0) % 360.0 - 180.0


def _find_solar_longitude(year: int, month: int, target_deg: float) -> datetime.datetime:
    # every equinox/solstice falls between the 15th and the 28th of its month
    lo = days_since_j2000(datetime.datetime(year, month, 15, tzinfo=datetime.timezone.utc))
    hi = days_since_j2000(datetime.datetime(year, month, 28, tzinfo=datetime.timezone.utc))
    for _ in range(40):
        mid = (lo + hi) / 2.0
        if _longitude_offset_deg(mid, target_deg) < 0:
            lo = mid
        else:
            hi = mid
    return datetime_from_days((lo + hi) / 2.0).replace(microsecond=0)


def season_boundaries(year: int) -> dict[str, datetime.datetime]:
    return {name: _find_solar_longitude(year, month, target) for name, target, month in SEASON_EVENTS}


def current_season(when: datetime.datetime) -> str:
    month = when.month
    if 3 <= month <= 5:
        return "Spring"
    if 6 <= month <= 8:
        return "Summer"
    if 9 <= month <= 11:
        return "Fall"
    return "Winter"


def season_info(when: datetime.datetime | None = None) -> SeasonInfo:
    when = as_utc(when or datetime.datetime.now(datetime.timezone.utc))
    for name, instant in season_boundaries(when.year).items():
        if instant > when:
            return SeasonInfo(current=current_season(when), next_event_name=name, next_event_date=instant)
    name = SEASON_EVENTS[0][0]
    return SeasonInfo(
        current=current_season(when),
        next_event_name=name,
        next_event_date=season_boundaries(when.year + 1)[name],
    )
