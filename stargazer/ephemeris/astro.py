"""Low-precision analytic ephemeris for the sun and moon.

Every function that takes ``d`` (days since J2000.0, TT ~ UT) accepts either a
float or a numpy array so the altitude searches can sample a whole day in one
call. Accuracy is a few arcminutes for the sun and about a quarter of a degree
for the moon, which is plenty for rise/set times to the minute.
"""

import datetime
import math

import numpy as np

J2000 = datetime.datetime(2000, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)
AU_KM = 149597870.7
EARTH_RADIUS_KM = 6378.14
SYNODIC_MONTH_DAYS = 29.53059


def _to_julian_date(dt: datetime.datetime) -> float:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    dt = dt.astimezone(datetime.timezone.utc)
    year = dt.year
    month = dt.month
    day = dt.day + (dt.hour + (dt.minute + (dt.second + dt.microsecond / 1e6) / 60.0) / 60.0) / 24.0
    if month <= 2:
        year -= 1
        month += 12
    a = math.floor(year / 100)
    b = 2 - a + math.floor(a / 4)
    jd = math.floor(365.25 * (year + 4716)) + math.floor(30.6001 * (month + 1)) + day + b - 1524.5
    return jd


def julian_date(dt: datetime.datetime) -> float:
    return _to_julian_date(dt)


def days_since_j2000(dt: datetime.datetime) -> float:
    return _to_julian_date(dt) - 2451545.0


def datetime_from_days(d: float) -> datetime.datetime:
    return J2000 + datetime.timedelta(days=float(d))


def _normalize_angle_rad(angle):
    return np.mod(angle, 2.0 * math.pi)


def gmst_rad(d):
    gmst_hours = 18.697374558 + 24.06570982441908 * np.asarray(d, dtype=float)
    return _normalize_angle_rad(np.radians(np.mod(gmst_hours, 24.0) * 15.0))


def local_sidereal_time_rad(d, longitude_deg: float):
    return _normalize_angle_rad(gmst_rad(d) + math.radians(longitude_deg))


def obliquity_rad(d):
    return np.radians(23.439 - 0.0000004 * np.asarray(d, dtype=float))


def ecliptic_to_equatorial(lam, beta, d):
    eps = obliquity_rad(d)
    sin_dec = np.sin(beta) * np.cos(eps) + np.cos(beta) * np.sin(eps) * np.sin(lam)
    dec = np.arcsin(np.clip(sin_dec, -1.0, 1.0))
    y = np.sin(lam) * np.cos(eps) - np.tan(beta) * np.sin(eps)
    x = np.cos(lam)
    ra = _normalize_angle_rad(np.arctan2(y, x))
    return ra, dec


def sun_ecliptic(d):
    """Apparent ecliptic longitude (rad) and distance (AU) of the sun."""
    d = np.asarray(d, dtype=float)
    l = np.radians(np.mod(280.460 + 0.9856474 * d, 360.0))
    g = np.radians(np.mod(357.528 + 0.9856003 * d, 360.0))
    lam = l + np.radians(1.915) * np.sin(g) + np.radians(0.020) * np.sin(2 * g)
    dist = 1.00014 - 0.01671 * np.cos(g) - 0.00014 * np.cos(2 * g)
    return _normalize_angle_rad(lam), dist


def sun_ra_dec_rad(d):
    lam, _ = sun_ecliptic(d)
    return ecliptic_to_equatorial(lam, np.zeros_like(lam), d)


def moon_ecliptic(d):
    """Geocentric ecliptic longitude, latitude (rad) and distance (km) of the moon."""
    d = np.asarray(d, dtype=float)
    l = np.radians(np.mod(218.316 + 13.176396 * d, 360.0))
    m = np.radians(np.mod(134.963 + 13.064993 * d, 360.0))
    f = np.radians(np.mod(93.272 + 13.229350 * d, 360.0))
    dd = np.radians(np.mod(297.850 + 12.190749 * d, 360.0))
    ms = np.radians(np.mod(357.529 + 0.98560028 * d, 360.0))

    lon_terms = (
        6.289 * np.sin(m)
        - 1.274 * np.sin(m - 2 * dd)
        + 0.658 * np.sin(2 * dd)
        - 0.186 * np.sin(ms)
        - 0.059 * np.sin(2 * m - 2 * dd)
        - 0.057 * np.sin(m - 2 * dd + ms)
        + 0.053 * np.sin(m + 2 * dd)
        + 0.046 * np.sin(2 * dd - ms)
        + 0.041 * np.sin(m - ms)
        - 0.035 * np.sin(dd)
        - 0.031 * np.sin(m + ms)
        - 0.015 * np.sin(2 * f - 2 * dd)
        + 0.011 * np.sin(m - 4 * dd)
    )
    lat_terms = (
        5.128 * np.sin(f)
        - 0.173 * np.sin(f - 2 * dd)
        - 0.055 * np.sin(m - f - 2 * dd)
        - 0.046 * np.sin(m + f - 2 * dd)
        + 0.033 * np.sin(f + 2 * dd)
        + 0.017 * np.sin(2 * m + f)
    )
    dist_km = (
        385000.56
        - 20905.355 * np.cos(m)
        - 3699.111 * np.cos(2 * dd - m)
        - 2955.968 * np.cos(2 * dd)
        - 569.925 * np.cos(2 * m)
    )
    lam = _normalize_angle_rad(l + np.radians(lon_terms))
    beta = np.radians(lat_terms)
    return lam, beta, dist_km


def moon_ra_dec_rad(d):
    lam, beta, _ = moon_ecliptic(d)
    return ecliptic_to_equatorial(lam, beta, d)


def ra_dec_to_alt_az(ra_rad, dec_rad, lat_rad: float, lon_deg: float, d):
    lst = local_sidereal_time_rad(d, lon_deg)
    ha = _normalize_angle_rad(lst - ra_rad)
    sin_alt = np.sin(dec_rad) * math.sin(lat_rad) + np.cos(dec_rad) * math.cos(lat_rad) * np.cos(ha)
    alt = np.arcsin(np.clip(sin_alt, -1.0, 1.0))
    az = np.arctan2(
        -np.sin(ha),
        np.tan(dec_rad) * math.cos(lat_rad) - math.sin(lat_rad) * np.cos(ha),
    )
    return alt, _normalize_angle_rad(az)


def moon_parallax_rad(dist_km):
    return np.arcsin(EARTH_RADIUS_KM / np.asarray(dist_km, dtype=float))


def refraction_deg(alt_deg):
    # Bennett (1982), apparent altitude correction; negligible below -1 deg.
    alt_deg = np.asarray(alt_deg, dtype=float)
    h = np.maximum(alt_deg, -1.0)
    r = 1.02 / np.tan(np.radians(h + 10.3 / (h + 5.11))) / 60.0
    return np.where(alt_deg > -1.0, r, 0.0)


def angular_separation_rad(ra1, dec1, ra2, dec2):
    cos_sep = np.sin(dec1) * np.sin(dec2) + np.cos(dec1) * np.cos(dec2) * np.cos(ra1 - ra2)
    return np.arccos(np.clip(cos_sep, -1.0, 1.0))


def angular_separation(ra1_deg: float, dec1_deg: float, ra2_deg: float, dec2_deg: float) -> float:
    return float(
        np.degrees(
            angular_separation_rad(
                math.radians(ra1_deg),
                math.radians(dec1_deg),
                math.radians(ra2_deg),
                math.radians(dec2_deg),
            )
        )
    )


def moon_phase_fraction(d):
    sun_lon, _ = sun_ecliptic(d)
    moon_lon, _, _ = moon_ecliptic(d)
    phase = np.mod(moon_lon - sun_lon, 2.0 * math.pi) / (2.0 * math.pi)
    # mod can land exactly on 1.0 for tiny negative differences
    return np.where(phase >= 1.0, 0.0, phase)


def moon_illumination_fraction(d):
    phase = moon_phase_fraction(d)
    return (1.0 - np.cos(2.0 * math.pi * phase)) / 2.0
