from dataclasses import dataclass
import datetime


@dataclass(frozen=True)
class MoonPhase:
    phase: float
    illumination: float
    age: float
    name: str


@dataclass(frozen=True)
class MoonInfo(MoonPhase):
    altitude: float = 0.0
    azimuth: float = 0.0
    distance: float = 0.0


@dataclass(frozen=True)
class HorizontalPosition:
    altitude: float
    azimuth: float
    distance: float
    is_visible: bool


@dataclass
class SunMoonTimes:
    sunrise: datetime.datetime | None = None
    sunset: datetime.datetime | None = None
    civil_dawn: datetime.datetime | None = None
    civil_dusk: datetime.datetime | None = None
    nautical_dawn: datetime.datetime | None = None
    nautical_dusk: datetime.datetime | None = None
    astronomical_dawn: datetime.datetime | None = None
    astronomical_dusk: datetime.datetime | None = None
    moonrise: datetime.datetime | None = None
    moonset: datetime.datetime | None = None


@dataclass(frozen=True)
class SeasonInfo:
    current: str
    next_event_name: str
    next_event_date: datetime.datetime
