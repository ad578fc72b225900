import datetime
import math

COMPASS_POINTS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)

KM_TO_MILES = 0.621371


def round_half_up(value: float, ndigits: int = 0) -> float:
    factor = 10 ** ndigits
    scaled = value * factor
    rounded = math.floor(scaled + 0.5)
    return rounded / factor if ndigits else rounded


def format_clock(dt: datetime.datetime, tz: datetime.tzinfo | None = None) -> str:
    local = as_utc(dt).astimezone(tz or datetime.timezone.utc)
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{hour}:{local.minute:02d} {suffix}"


def format_time_range(
    start: datetime.datetime,
    end: datetime.datetime,
    tz: datetime.tzinfo | None = None,
) -> str:
    return f"{format_clock(start, tz)} – {format_clock(end, tz)}"


def format_short_date(dt: datetime.datetime) -> str:
    return f"{dt:%b} {dt.day}"


def format_distance(km: float, metric: bool = False) -> str:
    if metric:
        if km < 1:
            return f"{round_half_up(km * 1000)} m"
        return f"{round_half_up(km)} km"
    return f"{round_half_up(km * KM_TO_MILES)} mi"


def azimuth_to_direction(azimuth_deg: float) -> str:
    index = round_half_up((azimuth_deg % 360.0) / 22.5) % 16
    return COMPASS_POINTS[index]


def format_pass_time(risetime: datetime.datetime, duration_s: float, tz: datetime.tzinfo | None = None) -> str:
    minutes = round_half_up(duration_s / 60.0)
    return f"{format_clock(risetime, tz)} ({minutes} min)"


def isoformat_utc(dt: datetime.datetime | None) -> str | None:
    if dt is None:
        return None
    text = as_utc(dt).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def slugify(value: str) -> str:
    chars = [c.lower() if c.isalnum() else "-" for c in value.strip()]
    slug = "".join(chars)
    while "--" in slug:
        slug = slug.replace("--", "-")
    return slug.strip("-")


def as_utc(dt: datetime.datetime) -> datetime.datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc)
