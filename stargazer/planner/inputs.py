from dataclasses import dataclass
import datetime
import math

from stargazer.config import DEFAULT_LATITUDE_DEG, DEFAULT_LONGITUDE_DEG
from stargazer.util.format import as_utc
from stargazer.util.geo import Coordinates, parse_coordinates

DEFAULT_LOCATION = Coordinates(lat=DEFAULT_LATITUDE_DEG, lng=DEFAULT_LONGITUDE_DEG)
DEFAULT_DAYS = 60
MIN_DAYS = 1
MAX_DAYS = 365


@dataclass(frozen=True)
class NormalizedRequest:
    coords: Coordinates
    when: datetime.datetime
    days: int
    used_default_location: bool


def parse_date(value) -> datetime.datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return as_utc(value)
    if isinstance(value, datetime.date):
        return datetime.datetime(value.year, value.month, value.day, tzinfo=datetime.timezone.utc)
    text = str(value).strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return as_utc(datetime.datetime.fromisoformat(text))
    except ValueError:
        return None


def parse_days(value) -> int:
    if value is None or isinstance(value, bool):
        return DEFAULT_DAYS
    try:
        days = float(str(value).strip())
    except ValueError:
        return DEFAULT_DAYS
    if not math.isfinite(days):
        return DEFAULT_DAYS
    return int(max(MIN_DAYS, min(MAX_DAYS, int(days))))


def normalize_request(
    lat=None,
    lng=None,
    date=None,
    days=None,
    default: Coordinates = DEFAULT_LOCATION,
    now: datetime.datetime | None = None,
) -> NormalizedRequest:
    """Coerce raw request parameters into safe values; never raises."""
    coords = parse_coordinates(lat, lng)
    site = coords or default
    when = parse_date(date)
    if when is not None and _is_date_only(date):
        # a bare calendar date means that date at the observer, taken at local noon
        when = when + datetime.timedelta(hours=12 - site.lng / 15.0)
    if when is None:
        when = as_utc(now or datetime.datetime.now(datetime.timezone.utc))
    return NormalizedRequest(
        coords=site,
        when=when,
        days=parse_days(days),
        used_default_location=coords is None,
    )


def _is_date_only(value) -> bool:
    if isinstance(value, datetime.datetime):
        return False
    if isinstance(value, datetime.date):
        return True
    return len(str(value).strip()) == 10
