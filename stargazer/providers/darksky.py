"""Dark-sky sites and a distance-based light pollution estimate."""

from dataclasses import dataclass, replace
import csv
import datetime
import functools
from pathlib import Path
from typing import Sequence

from stargazer.planner.visibility import calculate_optimal_window
from stargazer.util.format import format_distance, format_time_range, round_half_up
from stargazer.util.geo import Coordinates, clamp, haversine_km

from .types import DarkSkyLocation, DarkSkyReport

DATA_DIR = Path(__file__).resolve().parents[1] / "data"

# (distance below km, score)
DISTANCE_SCORES = ((10, 35), (20, 50), (40, 65), (80, 80), (150, 90))
OPEN_SKY_SCORE = 100

USER_SCORE_RANGE = (20, 99)
LOCATION_SCORE_RANGE = (25, 99)
DISTANCE_PENALTY_PER_KM = 0.2


@dataclass(frozen=True)
class LightSource:
    name: str
    coordinates: Coordinates


@functools.lru_cache(maxsize=1)
def load_dark_sky_sites() -> tuple[DarkSkyLocation, ...]:
    path = DATA_DIR / "dark_sky_locations.csv"
    sites = []
    with open(path, "r", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            amenities = [a.strip() for a in (row.get("amenities") or "").split(";") if a.strip()]
            sites.append(
                DarkSkyLocation(
                    id=row["id"].strip(),
                    name=row["name"].strip(),
                    coordinates=Coordinates(lat=float(row["lat"]), lng=float(row["lng"])),
                    dark_sky_score=int(row["dark_sky_score"]),
                    bortle_class=int(row["bortle_class"]),
                    elevation=float(row["elevation_m"]),
                    description=row["description"].strip(),
                    amenities=amenities,
                    accessibility=row["accessibility"].strip(),
                    type=row["type"].strip(),
                )
            )
    return tuple(sites)


@functools.lru_cache(maxsize=1)
def load_light_sources() -> tuple[LightSource, ...]:
    path = DATA_DIR / "light_sources.csv"
    with open(path, "r", encoding="utf-8") as f:
        return tuple(
            LightSource(name=row["name"].strip(), coordinates=Coordinates(lat=float(row["lat"]), lng=float(row["lng"])))
            for row in csv.DictReader(f)
        )


def estimate_dark_sky_score(coords: Coordinates, sources: Sequence[LightSource] | None = None) -> int:
    sources = load_light_sources() if sources is None else sources
    if not sources:
        return OPEN_SKY_SCORE
    nearest = min(haversine_km(coords, s.coordinates) for s in sources)
    for limit_km, score in DISTANCE_SCORES:
        if nearest < limit_km:
            return score
    return OPEN_SKY_SCORE


def _best_window_text(site: DarkSkyLocation, when: datetime.datetime | None) -> str:
    window = calculate_optimal_window(site.coordinates, when)
    return format_time_range(window.start, window.end)


def find_nearby_locations(
    coords: Coordinates,
    max_distance: float = 200,
    limit: int = 10,
    when: datetime.datetime | None = None,
    metric: bool = False,
) -> list[DarkSkyLocation]:
    nearby = []
    for site in load_dark_sky_sites():
        distance = haversine_km(coords, site.coordinates)
        if distance > max_distance:
            continue
        nearby.append(replace(site, amenities=list(site.amenities), distance=distance, distance_display=format_distance(distance, metric)))
    nearby.sort(key=lambda s: s.dark_sky_score - s.distance * DISTANCE_PENALTY_PER_KM, reverse=True)
    nearby = nearby[:limit]
    for site in nearby:
        site.best_window = _best_window_text(site, when)
    return nearby


def recommend_locations(
    coords: Coordinates,
    *,
    max_distance: float = 150,
    min_quality: int = 70,
    accessibility: Sequence[str] | None = None,
    amenities: Sequence[str] | None = None,
    when: datetime.datetime | None = None,
) -> list[DarkSkyLocation]:
    sites = find_nearby_locations(coords, max_distance, 50, when)
    sites = [s for s in sites if s.dark_sky_score >= min_quality]
    if accessibility:
        sites = [s for s in sites if s.accessibility in accessibility]
    if amenities:
        sites = [s for s in sites if any(a in s.amenities for a in amenities)]
    return sites


def get_location_details(location_id: str, when: datetime.datetime | None = None) -> DarkSkyLocation | None:
    for site in load_dark_sky_sites():
        if site.id == location_id:
            return replace(
                site,
                amenities=list(site.amenities),
                distance_display=format_distance(0),
                best_window=_best_window_text(site, when),
            )
    return None


def moon_penalty(moon_illumination: float) -> int:
    return round_half_up(moon_illumination * 0.1)


def weather_adjustment(weather_quality: float | None) -> int:
    if weather_quality is None:
        return 0
    return round_half_up((weather_quality - 60) * 0.2)


def score_dark_sky(
    coords: Coordinates,
    moon_illumination: float,
    weather_quality: float | None = None,
    *,
    base_score: int | None = None,
    max_distance: float = 200,
    limit: int = 10,
    when: datetime.datetime | None = None,
) -> DarkSkyReport:
    """Local sky score and nearby sites, adjusted for tonight's moon and weather."""
    base = estimate_dark_sky_score(coords) if base_score is None else base_score
    penalty = moon_penalty(moon_illumination)
    adjustment = weather_adjustment(weather_quality)

    user_score = int(clamp(base - penalty + adjustment, *USER_SCORE_RANGE))
    locations = find_nearby_locations(coords, max_distance, limit, when)
    for rank, site in enumerate(locations):
        site.dark_sky_score = int(clamp(site.dark_sky_score - penalty + adjustment - rank, *LOCATION_SCORE_RANGE))
    locations.sort(key=lambda s: s.dark_sky_score, reverse=True)
    return DarkSkyReport(
        user_score=user_score,
        moon_penalty=penalty,
        weather_adjustment=adjustment,
        locations=locations,
    )
