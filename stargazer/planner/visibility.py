import datetime

from stargazer.ephemeris.moon import calculate_moon_phase
from stargazer.ephemeris.search import ASTRONOMICAL_DEG, RISE, SET, local_midnight, search_altitude
from stargazer.util.format import round_half_up
from stargazer.util.geo import Coordinates, clamp

from .types import ObservationWindow, VisibilityFactors, VisibilityScore

# lower radiance bound of Bortle classes 2..9
BORTLE_RADIANCE_THRESHOLDS = (1, 3, 10, 30, 100, 300, 1000, 3000)

DUSK_FALLBACK_HOURS = 19.5
DAWN_FALLBACK_HOURS = 29.0


def rating_for_score(score: float) -> str:
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "fair"
    return "poor"


def altitude_factor(altitude: float) -> float:
    if altitude < 15:
        value = altitude * 3.0
    elif altitude < 30:
        value = 45.0 + (altitude - 15.0) * 25.0 / 15.0
    else:
        value = 70.0 + (altitude - 30.0) * 0.5
    return clamp(value, 0.0, 100.0)


def moon_interference_factor(moon_phase: float, moon_altitude: float, angular_separation: float) -> float:
    if moon_altitude <= 0:
        return 100.0
    # triangular approximation of the lit fraction
    lit = moon_phase * 2.0 if moon_phase < 0.5 else (1.0 - moon_phase) * 2.0
    brightness = lit * 100.0
    separation_factor = min(100.0, angular_separation / 90.0 * 100.0)
    return 100.0 - brightness * (100.0 - separation_factor) / 100.0


def light_pollution_factor(bortle_class: float) -> float:
    return max(0.0, 100.0 - (bortle_class - 1) * 12.5)


def atmospheric_factor(cloud_cover: float, humidity: float) -> float:
    return max(0.0, 100.0 - cloud_cover - max(0.0, humidity - 70.0) * 0.5)


def calculate_visibility_score(
    *,
    altitude: float,
    moon_phase: float,
    moon_altitude: float,
    angular_separation: float,
    bortle_class: float = 5,
    cloud_cover: float = 0,
    humidity: float = 50,
) -> VisibilityScore:
    alt = altitude_factor(altitude)
    moon = moon_interference_factor(moon_phase, moon_altitude, angular_separation)
    light = light_pollution_factor(bortle_class)
    atmo = atmospheric_factor(cloud_cover, humidity)

    score = round_half_up(alt * 0.30 + moon * 0.25 + atmo * 0.25 + light * 0.20)
    return VisibilityScore(
        score=score,
        rating=rating_for_score(score),
        factors=VisibilityFactors(
            moon_interference=round_half_up(moon),
            altitude=round_half_up(alt),
            atmospheric_conditions=round_half_up(atmo),
            light_pollution=round_half_up(light),
        ),
    )


def moon_interference_label(illumination: float) -> str:
    if illumination < 25:
        return "minimal"
    if illumination < 50:
        return "low"
    if illumination < 75:
        return "moderate"
    return "high"


def calculate_optimal_window(coords: Coordinates, when: datetime.datetime | None = None) -> ObservationWindow:
    """Astronomical night following the local day of ``when``.

    Starts at the sun's descending -18 deg crossing and ends at the next
    ascending one, so the window never runs backwards. Where the sun never
    gets that low (high latitudes in summer) fixed offsets from local
    midnight are used instead.
    """
    when = when or datetime.datetime.now(datetime.timezone.utc)
    midnight = local_midnight(when, coords.lng)

    start = search_altitude("sun", coords, SET, midnight, 1.0, ASTRONOMICAL_DEG)
    end = None
    if start is not None:
        end = search_altitude("sun", coords, RISE, start, 1.0, ASTRONOMICAL_DEG)
    if start is None or end is None:
        start = midnight + datetime.timedelta(hours=DUSK_FALLBACK_HOURS)
        end = midnight + datetime.timedelta(hours=DAWN_FALLBACK_HOURS)

    illumination = calculate_moon_phase(when).illumination
    return ObservationWindow(
        start=start,
        end=end,
        quality=round_half_up(100.0 - illumination * 0.8),
        duration_hours=round_half_up((end - start).total_seconds() / 3600.0, 1),
        moon_interference=moon_interference_label(illumination),
    )


def calculate_bortle_class(radiance: float) -> int:
    """Approximate Bortle class (1-9) from VIIRS-style upward radiance."""
    for index, threshold in enumerate(BORTLE_RADIANCE_THRESHOLDS):
        if radiance < threshold:
            return index + 1
    return 9
