from .astro import angular_separation, angular_separation_rad, days_since_j2000, julian_date
from .moon import calculate_moon_phase, moon_info, phase_name
from .position import BODIES, body_position, planet_positions, visible_planets
from .search import (
    calculate_sun_moon_times,
    find_next_rise,
    local_midnight,
    moon_times,
    search_altitude,
    sun_times,
)
from .seasons import season_boundaries, season_info
from .types import HorizontalPosition, MoonInfo, MoonPhase, SeasonInfo, SunMoonTimes

__all__ = [
    "BODIES",
    "HorizontalPosition",
    "MoonInfo",
    "MoonPhase",
    "SeasonInfo",
    "SunMoonTimes",
    "angular_separation",
    "angular_separation_rad",
    "body_position",
    "calculate_moon_phase",
    "calculate_sun_moon_times",
    "days_since_j2000",
    "find_next_rise",
    "julian_date",
    "local_midnight",
    "moon_info",
    "moon_times",
    "phase_name",
    "planet_positions",
    "search_altitude",
    "season_boundaries",
    "season_info",
    "sun_times",
    "visible_planets",
]
