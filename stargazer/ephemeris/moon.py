import datetime
import math

from stargazer.util.format import round_half_up
from stargazer.util.geo import Coordinates

from .astro import SYNODIC_MONTH_DAYS, days_since_j2000, moon_ecliptic, moon_phase_fraction
from .position import altitude_azimuth
from .types import MoonInfo, MoonPhase

PHASE_NAMES = (
    (0.033, "New Moon"),
    (0.216, "Waxing Crescent"),
    (0.284, "First Quarter"),
    (0.466, "Waxing Gibbous"),
    (0.534, "Full Moon"),
    (0.716, "Waning Gibbous"),
    (0.784, "Last Quarter"),
    (0.967, "Waning Crescent"),
)


def phase_name(phase: float) -> str:
    for limit, name in PHASE_NAMES:
        if phase < limit:
            return name
    return "New Moon"


def illumination_percent(phase: float) -> float:
    return (1.0 - math.cos(2.0 * math.pi * phase)) / 2.0 * 100.0


def calculate_moon_phase(when: datetime.datetime | None = None) -> MoonPhase:
    when = when or datetime.datetime.now(datetime.timezone.utc)
    phase = float(moon_phase_fraction(days_since_j2000(when)))
    return MoonPhase(
        phase=phase,
        illumination=round_half_up(illumination_percent(phase), 1),
        age=round_half_up(phase * SYNODIC_MONTH_DAYS, 1),
        name=phase_name(phase),
    )


def moon_info(coords: Coordinates, when: datetime.datetime | None = None) -> MoonInfo:
    when = when or datetime.datetime.now(datetime.timezone.utc)
    phase = calculate_moon_phase(when)
    d = days_since_j2000(when)
    alt, az = altitude_azimuth("moon", coords, d, refraction=True)
    _, _, dist_km = moon_ecliptic(d)
    return MoonInfo(
        phase=phase.phase,
        illumination=phase.illumination,
        age=phase.age,
        name=phase.name,
        altitude=float(alt),
        azimuth=float(az),
        distance=float(round_half_up(float(dist_km))),
    )
