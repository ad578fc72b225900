"""Upcoming sky events: moon phase milestones, meteor shower peaks, notable events."""

import datetime

from stargazer.ephemeris.astro import days_since_j2000, moon_phase_fraction
from stargazer.ephemeris.moon import calculate_moon_phase
from stargazer.util.format import as_utc, format_short_date, round_half_up, slugify
from stargazer.util.geo import Coordinates

from .catalog import ReferenceCatalog
from .types import AstronomyEvent, MeteorShower
from .visibility import rating_for_score

DEFAULT_DAYS_AHEAD = 60

MOON_MILESTONES = (
    (0.0, "New Moon", "Ideal for deep-sky observation. No moonlight interference."),
    (0.25, "First Quarter Moon", "Half-illuminated moon visible in evening sky."),
    (0.5, "Full Moon", "Bright moonlight affects deep-sky viewing. Great for lunar observation."),
    (0.75, "Last Quarter Moon", "Half-illuminated moon visible in morning sky."),
)

METEOR_WINDOW = "10:00 PM – 4:00 AM"
METEOR_PEAK = "Around 2:00 AM local time"
NOTABLE_WINDOW = "Dusk – Dawn"
MOON_WINDOW = "All night"

_BISECT_STEPS = 32


def _phase(when: datetime.datetime) -> float:
    return float(moon_phase_fraction(days_since_j2000(when)))


def _find_phase_crossing(
    start: datetime.datetime,
    end: datetime.datetime,
    start_phase: float,
    offset: float,
) -> datetime.datetime:
    # phase advances monotonically (about 0.034/day), so the unwrapped
    # advance from ``start`` is monotonic over a single day step
    lo, hi = start, end
    for _ in range(_BISECT_STEPS):
        mid = lo + (hi - lo) / 2
        if (_phase(mid) - start_phase) % 1.0 < offset:
            lo = mid
        else:
            hi = mid
    return hi.replace(microsecond=0)


def find_moon_milestones(
    start: datetime.datetime,
    end: datetime.datetime,
) -> list[tuple[datetime.datetime, float, str, str]]:
    """Instants in [start, end) where the phase reaches 0, 0.25, 0.5 or 0.75."""
    found = []
    step_start = start
    p0 = _phase(step_start)
    while step_start < end:
        step_end = min(step_start + datetime.timedelta(days=1), end)
        p1 = _phase(step_end)
        advance = (p1 - p0) % 1.0
        for target, title, summary in MOON_MILESTONES:
            offset = (target - p0) % 1.0
            if offset < advance:
                instant = step_start if offset == 0 else _find_phase_crossing(step_start, step_end, p0, offset)
                found.append((instant, target, title, summary))
        step_start = step_end
        p0 = p1
    found.sort(key=lambda item: item[0])
    return found


def _moon_events(start: datetime.datetime, end: datetime.datetime) -> list[AstronomyEvent]:
    events = []
    for instant, _, title, summary in find_moon_milestones(start, end):
        illumination = calculate_moon_phase(instant).illumination
        events.append(
            AstronomyEvent(
                id=f"moon-{instant:%Y-%m-%d}-{slugify(title)}",
                title=title,
                date=instant,
                date_display=format_short_date(instant),
                window=MOON_WINDOW,
                visibility="excellent" if illumination > 80 else "good",
                visibility_score=round_half_up(100 - illumination),
                summary=summary,
                type="moon",
            )
        )
    return events


def moon_condition(illumination: float) -> str:
    if illumination < 30:
        return "Dark skies - excellent conditions!"
    if illumination < 60:
        return "Some moonlight, but still observable."
    return "Bright moonlight may reduce visibility."


def meteor_visibility_score(zhr: int, illumination: float) -> int:
    return max(0, round_half_up(min(100, zhr) * (1 - illumination / 150)))


def _date_start(day: datetime.date) -> datetime.datetime:
    return datetime.datetime(day.year, day.month, day.day, tzinfo=datetime.timezone.utc)


def _catalog_days(start: datetime.datetime, end: datetime.datetime) -> tuple[datetime.date, datetime.date]:
    """Calendar dates whose UTC midnight lies in [start, end]."""
    first = (start - datetime.timedelta(microseconds=1)).date() + datetime.timedelta(days=1)
    return first, end.date()


def _meteor_events(
    first_day: datetime.date,
    last_day: datetime.date,
    catalog: ReferenceCatalog,
) -> list[AstronomyEvent]:
    events = []
    for shower in catalog.showers_peaking_between(first_day, last_day):
        peak = _date_start(shower.peak)
        illumination = calculate_moon_phase(peak).illumination
        score = meteor_visibility_score(shower.zhr, illumination)
        events.append(
            AstronomyEvent(
                id=f"meteor-{slugify(shower.name)}-{shower.peak.isoformat()}",
                title=f"{shower.name} Meteor Shower",
                date=peak,
                date_display=format_short_date(peak),
                window=METEOR_WINDOW,
                visibility=rating_for_score(score),
                visibility_score=score,
                summary=f"Peak rate: {shower.zhr} meteors/hour. {moon_condition(illumination)}",
                type="meteor",
                peak=METEOR_PEAK,
            )
        )
    return events


def _notable_events(
    first_day: datetime.date,
    last_day: datetime.date,
    catalog: ReferenceCatalog,
) -> list[AstronomyEvent]:
    events = []
    for notable in catalog.events_between(first_day, last_day):
        when = _date_start(notable.date)
        events.append(
            AstronomyEvent(
                id=f"{notable.type}-{notable.date.isoformat()}-{slugify(notable.title)}",
                title=notable.title,
                date=when,
                date_display=format_short_date(when),
                window=NOTABLE_WINDOW,
                visibility=notable.visibility,
                visibility_score=notable.score,
                summary=notable.summary,
                type=notable.type,
            )
        )
    return events


def _collect_events(
    start: datetime.datetime,
    end: datetime.datetime,
    first_day: datetime.date,
    last_day: datetime.date,
    catalog: ReferenceCatalog,
) -> list[AstronomyEvent]:
    events = (
        _moon_events(start, end)
        + _meteor_events(first_day, last_day, catalog)
        + _notable_events(first_day, last_day, catalog)
    )
    events.sort(key=lambda e: (e.date, e.id))
    return events


def generate_upcoming_events(
    coords: Coordinates | None = None,
    from_date: datetime.datetime | None = None,
    days_ahead: int = DEFAULT_DAYS_AHEAD,
    catalog: ReferenceCatalog | None = None,
) -> list[AstronomyEvent]:
    # coords unused: every event here is geocentric
    catalog = catalog or ReferenceCatalog.load()
    start = as_utc(from_date or datetime.datetime.now(datetime.timezone.utc))
    end = start + datetime.timedelta(days=days_ahead)
    first_day, last_day = _catalog_days(start, end)
    return _collect_events(start, end, first_day, last_day, catalog)


def tonight_start(
    coords: Coordinates | None,
    when: datetime.datetime | None = None,
) -> datetime.datetime:
    """UTC midnight of the observer's local calendar date.

    Catalog entries are dated in UTC, so the day is matched by calendar date
    rather than by the observer's local midnight instant.
    """
    when = as_utc(when or datetime.datetime.now(datetime.timezone.utc))
    if coords is not None:
        when = when + datetime.timedelta(hours=coords.lng / 15.0)
    return when.replace(hour=0, minute=0, second=0, microsecond=0)


def get_tonight_events(
    coords: Coordinates | None = None,
    when: datetime.datetime | None = None,
    catalog: ReferenceCatalog | None = None,
) -> list[AstronomyEvent]:
    """Events of one local evening; the day after is not included."""
    catalog = catalog or ReferenceCatalog.load()
    start = tonight_start(coords, when)
    day = start.date()
    return _collect_events(start, start + datetime.timedelta(days=1), day, day, catalog)


def get_active_meteor_showers(
    when: datetime.datetime | None = None,
    catalog: ReferenceCatalog | None = None,
) -> list[MeteorShower]:
    catalog = catalog or ReferenceCatalog.load()
    day = as_utc(when or datetime.datetime.now(datetime.timezone.utc)).date()
    return catalog.showers_active_on(day)
