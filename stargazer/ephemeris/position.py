import datetime
import math

import numpy as np

from stargazer.util.geo import Coordinates

from .astro import (
    AU_KM,
    days_since_j2000,
    moon_ecliptic,
    moon_parallax_rad,
    moon_ra_dec_rad,
    ra_dec_to_alt_az,
    refraction_deg,
    sun_ecliptic,
    sun_ra_dec_rad,
)
from .planets import PLANETS, planet_name, planet_ra_dec_rad
from .types import HorizontalPosition

BODIES = ("sun", "moon") + PLANETS


def equatorial(body: str, d):
    """RA, Dec (rad) and geocentric distance (AU; km for the moon)."""
    if body == "sun":
        ra, dec = sun_ra_dec_rad(d)
        _, dist = sun_ecliptic(d)
        return ra, dec, dist
    if body == "moon":
        ra, dec = moon_ra_dec_rad(d)
        _, _, dist_km = moon_ecliptic(d)
        return ra, dec, dist_km
    if body in PLANETS:
        return planet_ra_dec_rad(body, d)
    raise ValueError(f"Unknown body: {body}")


def altitude_azimuth(body: str, coords: Coordinates, d, refraction: bool = False):
    """Topocentric altitude and azimuth in degrees for one or many instants."""
    ra, dec, dist = equatorial(body, d)
    alt, az = ra_dec_to_alt_az(ra, dec, math.radians(coords.lat), coords.lng, d)
    if body == "moon":
        alt = alt - moon_parallax_rad(dist) * np.cos(alt)
    alt_deg = np.degrees(alt)
    if refraction:
        alt_deg = alt_deg + refraction_deg(alt_deg)
    return alt_deg, np.degrees(az)


def altitude_deg(body: str, coords: Coordinates, d):
    alt, _ = altitude_azimuth(body, coords, d)
    return alt


def body_position(
    body: str,
    coords: Coordinates,
    when: datetime.datetime,
    refraction: bool = True,
) -> HorizontalPosition:
    d = days_since_j2000(when)
    alt, az = altitude_azimuth(body, coords, d, refraction=refraction)
    _, _, dist = equatorial(body, d)
    distance = float(dist)
    if body == "moon":
        distance = distance / AU_KM
    altitude = float(alt)
    return HorizontalPosition(
        altitude=altitude,
        azimuth=float(az),
        distance=distance,
        is_visible=altitude > 0,
    )


def planet_positions(coords: Coordinates, when: datetime.datetime) -> dict[str, HorizontalPosition]:
    return {planet_name(p): body_position(p, coords, when) for p in PLANETS}


def visible_planets(coords: Coordinates, when: datetime.datetime) -> dict[str, HorizontalPosition]:
    return {name: pos for name, pos in planet_positions(coords, when).items() if pos.is_visible}
