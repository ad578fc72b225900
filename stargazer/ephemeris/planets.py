"""Geocentric planet positions from mean orbital elements (Schlyter)."""

import math

import numpy as np

from .astro import obliquity_rad

PLANETS = ("mercury", "venus", "mars", "jupiter", "saturn", "uranus", "neptune")

PLANET_INFO = {
    "mercury": {"name": "Mercury", "mag": -0.5},
    "venus": {"name": "Venus", "mag": -4.0},
    "mars": {"name": "Mars", "mag": -1.0},
    "jupiter": {"name": "Jupiter", "mag": -2.5},
    "saturn": {"name": "Saturn", "mag": -0.5},
    "uranus": {"name": "Uranus", "mag": 5.7},
    "neptune": {"name": "Neptune", "mag": 7.8},
}

# (N, i, w, a, e, M) as (value at epoch, rate per day); epoch is 1999 Dec 31.0 UT
_EPOCH_OFFSET_DAYS = 1.5
_ELEMENTS = {
    "mercury": ((48.3313, 3.24587e-5), (7.0047, 5.00e-8), (29.1241, 1.01444e-5), (0.387098, 0.0), (0.205635, 5.59e-10), (168.6562, 4.0923344368)),
    "venus": ((76.6799, 2.46590e-5), (3.3946, 2.75e-8), (54.8910, 1.38374e-5), (0.723330, 0.0), (0.006773, -1.302e-9), (48.0052, 1.6021302244)),
    "sun": ((0.0, 0.0), (0.0, 0.0), (282.9404, 4.70935e-5), (1.0, 0.0), (0.016709, -1.151e-9), (356.0470, 0.9856002585)),
    "mars": ((49.5574, 2.11081e-5), (1.8497, -1.78e-8), (286.5016, 2.92961e-5), (1.523688, 0.0), (0.093405, 2.516e-9), (18.6021, 0.5240207766)),
    "jupiter": ((100.4542, 2.76854e-5), (1.3030, -1.557e-7), (273.8777, 1.64505e-5), (5.20256, 0.0), (0.048498, 4.469e-9), (19.8950, 0.0830853001)),
    "saturn": ((113.6634, 2.38980e-5), (2.4886, -1.081e-7), (339.3939, 2.97661e-5), (9.55475, 0.0), (0.055546, -9.499e-9), (316.9670, 0.0334442282)),
    "uranus": ((74.0005, 1.3978e-5), (0.7733, 1.9e-8), (96.6612, 3.0565e-5), (19.18171, -1.55e-8), (0.047318, 7.45e-9), (142.5905, 0.011725806)),
    "neptune": ((131.7806, 3.0173e-5), (1.7700, -2.55e-7), (272.8461, -6.027e-6), (30.05826, 3.313e-8), (0.008606, 2.15e-9), (260.2471, 0.005995147)),
}


def _elements(planet: str, d):
    try:
        rows = _ELEMENTS[planet]
    except KeyError:
        raise ValueError(f"Unknown planet: {planet}") from None
    d = d + _EPOCH_OFFSET_DAYS
    return [base + rate * d for base, rate in rows]


def _solve_kepler(m, e):
    e_anom = m
    for _ in range(8):
        e_anom = e_anom - (e_anom - e * np.sin(e_anom) - m) / (1 - e * np.cos(e_anom))
    return e_anom


def heliocentric_xyz(planet: str, d):
    """Heliocentric ecliptic rectangular coordinates in AU."""
    d = np.asarray(d, dtype=float)
    n, i, w, a, e, m = _elements(planet, d)
    n = np.radians(n)
    i = np.radians(i)
    w = np.radians(w)
    m = np.radians(np.mod(m, 360.0))

    e_anom = _solve_kepler(m, e)
    xv = a * (np.cos(e_anom) - e)
    yv = a * (np.sqrt(1.0 - e * e) * np.sin(e_anom))
    v = np.arctan2(yv, xv)
    r = np.hypot(xv, yv)

    xh = r * (np.cos(n) * np.cos(v + w) - np.sin(n) * np.sin(v + w) * np.cos(i))
    yh = r * (np.sin(n) * np.cos(v + w) + np.cos(n) * np.sin(v + w) * np.cos(i))
    zh = r * (np.sin(v + w) * np.sin(i))
    return xh, yh, zh


def planet_ra_dec_rad(planet: str, d):
    """Geocentric RA, Dec (rad) and distance (AU)."""
    xh, yh, zh = heliocentric_xyz(planet, d)
    # the "sun" elements give the geocentric sun, i.e. minus the heliocentric earth
    xs, ys, zs = heliocentric_xyz("sun", d)
    xg = xh + xs
    yg = yh + ys
    zg = zh + zs
    eps = obliquity_rad(d)
    xq = xg
    yq = yg * np.cos(eps) - zg * np.sin(eps)
    zq = yg * np.sin(eps) + zg * np.cos(eps)
    ra = np.mod(np.arctan2(yq, xq), 2.0 * math.pi)
    dec = np.arctan2(zq, np.hypot(xq, yq))
    dist = np.sqrt(xg * xg + yg * yg + zg * zg)
    return ra, dec, dist


def planet_name(planet: str) -> str:
    return PLANET_INFO[planet]["name"]
