from dataclasses import dataclass, field
import datetime
from typing import Sequence

from stargazer.ephemeris.types import MoonPhase
from stargazer.providers.types import AuroraForecast, IssPass, SkyQuality, VisiblePlanet
from stargazer.util.geo import Coordinates

EVENT_TYPES = ("moon", "meteor", "planet", "eclipse", "conjunction", "other")
VISIBILITY_RATINGS = ("excellent", "good", "fair", "poor")


@dataclass(frozen=True)
class VisibilityFactors:
    moon_interference: int
    altitude: int
    atmospheric_conditions: int
    light_pollution: int


@dataclass(frozen=True)
class VisibilityScore:
    score: int
    rating: str
    factors: VisibilityFactors


@dataclass(frozen=True)
class ObservationWindow:
    start: datetime.datetime
    end: datetime.datetime
    quality: int
    duration_hours: float
    moon_interference: str


@dataclass(frozen=True)
class MeteorShower:
    name: str
    peak: datetime.date
    zhr: int
    active_start: datetime.date
    active_end: datetime.date


@dataclass(frozen=True)
class NotableEvent:
    date: datetime.date
    title: str
    type: str
    summary: str
    visibility: str
    score: int


@dataclass
class AstronomyEvent:
    id: str
    title: str
    date: datetime.datetime
    date_display: str
    window: str
    visibility: str
    visibility_score: int
    summary: str
    type: str
    peak: str | None = None


@dataclass(frozen=True)
class Recommendation:
    priority: str
    title: str
    description: str
    timing: str | None = None


@dataclass(frozen=True)
class OverallQuality:
    score: int
    rating: str
    description: str


@dataclass
class MoonSummary:
    phase: MoonPhase
    rise: datetime.datetime | None
    set: datetime.datetime | None


@dataclass
class SunSummary:
    sunset: datetime.datetime | None
    sunrise: datetime.datetime | None
    astronomical_dusk: datetime.datetime | None
    astronomical_dawn: datetime.datetime | None


@dataclass
class TonightPlan:
    location: Coordinates
    date: datetime.datetime
    moon: MoonSummary
    sun: SunSummary
    optimal_window: ObservationWindow
    local_dark_sky_score: int
    weather: SkyQuality | None
    visible_planets: Sequence[VisiblePlanet]
    tonight_events: Sequence[AstronomyEvent]
    active_showers: Sequence[MeteorShower]
    iss_passes: Sequence[IssPass]
    recommendations: Sequence[Recommendation]
    overall_quality: OverallQuality
    generated_at: datetime.datetime
    aurora: AuroraForecast | None = None
    warnings: list[str] = field(default_factory=list)
