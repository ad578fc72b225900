from dataclasses import dataclass, field
import datetime

from stargazer.util.geo import Coordinates

SEEING_LEVELS = ("excellent", "good", "fair", "poor")
ISS_BRIGHTNESS = ("visible", "possibly-visible", "not-visible")
STORM_LEVELS = ("none", "minor", "moderate", "strong", "severe", "extreme")
AURORA_PROBABILITIES = ("none", "unlikely", "possible", "likely", "high")


@dataclass(frozen=True)
class SkyQuality:
    cloud_cover: float
    humidity: float
    wind_speed: float
    temperature: float
    transparency: float
    quality: int
    seeing: str
    source: str


@dataclass(frozen=True)
class IssPass:
    risetime: datetime.datetime
    duration: int
    rise_azimuth: float
    max_altitude: float
    set_azimuth: float
    brightness: str


@dataclass(frozen=True)
class IssPosition:
    latitude: float
    longitude: float
    altitude: float
    velocity: float
    timestamp: datetime.datetime
    source: str


@dataclass(frozen=True)
class VisiblePlanet:
    name: str
    type: str
    best_altitude: float
    best_time: datetime.datetime
    visible: bool
    source: str


@dataclass
class DarkSkyLocation:
    id: str
    name: str
    coordinates: Coordinates
    dark_sky_score: int
    bortle_class: int
    elevation: float
    description: str
    amenities: list[str] = field(default_factory=list)
    accessibility: str = "moderate"
    type: str = "public"
    distance: float = 0.0
    distance_display: str = ""
    best_window: str = ""


@dataclass
class DarkSkyReport:
    user_score: int
    moon_penalty: int
    weather_adjustment: int
    locations: list[DarkSkyLocation] = field(default_factory=list)


@dataclass(frozen=True)
class KpReading:
    time: str
    kp: float
    observed: bool


@dataclass(frozen=True)
class AuroraForecast:
    kp: float
    storm_level: str
    description: str
    probability: str
    minimum_latitude: int
    message: str
    source: str
    fetched_at: datetime.datetime
    forecast: list[KpReading] = field(default_factory=list)
