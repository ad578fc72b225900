import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


def parse_coordinates(lat, lng) -> Coordinates | None:
    parsed_lat = _parse_float(lat)
    parsed_lng = _parse_float(lng)
    if parsed_lat is None or parsed_lng is None:
        return None
    if parsed_lat < -90.0 or parsed_lat > 90.0:
        return None
    if parsed_lng < -180.0 or parsed_lng > 180.0:
        return None
    return Coordinates(lat=parsed_lat, lng=parsed_lng)


def clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


def haversine_km(origin: Coordinates, target: Coordinates) -> float:
    d_lat = math.radians(target.lat - origin.lat)
    d_lng = math.radians(target.lng - origin.lng)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(origin.lat)) * math.cos(math.radians(target.lat)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def _parse_float(value) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(parsed):
        return None
    return parsed
