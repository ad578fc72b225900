from .format import (
    as_utc,
    azimuth_to_direction,
    format_distance,
    format_pass_time,
    format_time_range,
    isoformat_utc,
    round_half_up,
    slugify,
)
from .geo import Coordinates, clamp, haversine_km, parse_coordinates

__all__ = [
    "Coordinates",
    "as_utc",
    "azimuth_to_direction",
    "clamp",
    "format_distance",
    "format_pass_time",
    "format_time_range",
    "haversine_km",
    "isoformat_utc",
    "parse_coordinates",
    "round_half_up",
    "slugify",
]
