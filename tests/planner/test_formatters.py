import datetime
import json

import pytest

from stargazer.ephemeris.types import MoonPhase
from stargazer.planner.formatters import event_to_dict, format_json, format_text, plan_to_dict
from stargazer.planner.types import (
    AstronomyEvent,
    MoonSummary,
    ObservationWindow,
    OverallQuality,
    Recommendation,
    SunSummary,
    TonightPlan,
)
from stargazer.providers.aurora import build_aurora_forecast
from stargazer.providers.types import IssPass, KpReading, SkyQuality
from stargazer.util.geo import Coordinates

UTC = datetime.timezone.utc


def _dt(day, hour, minute=0):
    return datetime.datetime(2026, 2, day, hour, minute, tzinfo=UTC)


@pytest.fixture
def plan():
    return TonightPlan(
        location=Coordinates(lat=36.1147, lng=-115.1728),
        date=_dt(10, 3),
        moon=MoonSummary(
            phase=MoonPhase(phase=0.77, illumination=43.2, age=22.7, name="Last Quarter"),
            rise=_dt(10, 8, 30),
            set=None,
        ),
        sun=SunSummary(
            sunset=_dt(10, 1, 20),
            sunrise=_dt(10, 14, 40),
            astronomical_dusk=_dt(10, 2, 45),
            astronomical_dawn=_dt(10, 13, 15),
        ),
        optimal_window=ObservationWindow(
            start=_dt(10, 2, 45),
            end=_dt(10, 13, 15),
            quality=65,
            duration_hours=10.5,
            moon_interference="low",
        ),
        local_dark_sky_score=35,
        weather=SkyQuality(
            cloud_cover=45.0,
            humidity=55.0,
            wind_speed=8.0,
            temperature=15.0,
            transparency=55.0,
            quality=58,
            seeing="excellent",
            source="estimated",
        ),
        visible_planets=[],
        tonight_events=[
            AstronomyEvent(
                id="planet-2026-02-09-venus-at-greatest-elongation-east",
                title="Venus at Greatest Elongation East",
                date=_dt(9, 0),
                date_display="Feb 9",
                window="Dusk – Dawn",
                visibility="excellent",
                visibility_score=95,
                summary="Venus reaches maximum separation from Sun.",
                type="planet",
            )
        ],
        active_showers=[],
        iss_passes=[
            IssPass(
                risetime=_dt(10, 4, 12),
                duration=360,
                rise_azimuth=300.0,
                max_altitude=45.0,
                set_azimuth=120.0,
                brightness="visible",
            )
        ],
        recommendations=[
            Recommendation(priority="high", title="Observe the Last Quarter", description="43% illuminated.", timing="After sunset")
        ],
        overall_quality=OverallQuality(score=58, rating="Good", description="Favorable conditions for bright objects"),
        generated_at=_dt(10, 3),
    )


def test_plan_to_dict_shape(plan):
    data = plan_to_dict(plan)
    assert set(data) == {
        "location",
        "date",
        "moon",
        "sun",
        "optimalWindow",
        "localDarkSkyScore",
        "weather",
        "visiblePlanets",
        "tonightEvents",
        "activeShowers",
        "issPasses",
        "aurora",
        "recommendations",
        "overallQuality",
        "generatedAt",
    }
    assert data["location"] == {"lat": 36.1147, "lng": -115.1728}
    assert data["moon"] == {
        "phase": "Last Quarter",
        "illumination": 43.2,
        "age": 22.7,
        "rise": "2026-02-10T08:30:00.000Z",
        "set": None,
    }
    assert data["sun"]["astronomicalDusk"] == "2026-02-10T02:45:00.000Z"
    assert data["optimalWindow"] == {
        "start": "2026-02-10T02:45:00.000Z",
        "end": "2026-02-10T13:15:00.000Z",
        "quality": 65,
        "duration": 10.5,
    }
    assert data["weather"]["source"] == "estimated"
    assert data["weather"]["cloudCover"] == 45.0
    assert data["issPasses"][0]["formatted"] == "4:12 AM (6 min)"
    assert data["issPasses"][0]["riseAzimuth"] == 300.0
    assert data["overallQuality"]["rating"] == "Good"
    assert data["recommendations"][0]["timing"] == "After sunset"
    assert data["generatedAt"] == "2026-02-10T03:00:00.000Z"


def test_plan_to_dict_without_weather(plan):
    plan.weather = None
    assert plan_to_dict(plan)["weather"] is None


def test_plan_warnings_only_when_present(plan):
    assert "warnings" not in plan_to_dict(plan)
    plan.warnings.append("N2YO_API_KEY is not set")
    assert plan_to_dict(plan)["warnings"] == ["N2YO_API_KEY is not set"]


def test_event_to_dict(plan):
    data = event_to_dict(plan.tonight_events[0])
    assert data["date"] == "2026-02-09T00:00:00.000Z"
    assert data["dateDisplay"] == "Feb 9"
    assert data["visibilityScore"] == 95
    assert "peak" not in data


def test_format_json_round_trips_through_json(plan):
    assert json.loads(format_json(plan)) == plan_to_dict(plan)


def test_format_text(plan):
    text = format_text(plan)
    assert text.startswith("Stargazer Tonight")
    assert "Overall: 58 (Good)" in text
    assert "Moon: Last Quarter, 43.2% lit" in text
    assert "set --" in text
    assert "[estimated]" in text
    assert "ISS passes" in text
    assert "Venus at Greatest Elongation East" in text
    assert " 1. Observe the Last Quarter: 43% illuminated. [After sunset]" in text


def test_plan_aurora_section(plan):
    assert plan_to_dict(plan)["aurora"] is None
    plan.aurora = build_aurora_forecast(
        5.0,
        65.0,
        source="noaa",
        forecast=[KpReading(time="2026-02-10 06:00:00", kp=4.0, observed=False)],
        now=_dt(10, 3),
    )
    data = plan_to_dict(plan)["aurora"]
    assert data["current"] == {
        "kp": 5.0,
        "stormLevel": "minor",
        "description": "Minor geomagnetic storm (G1) - Aurora visible at high latitudes",
    }
    assert data["visibility"]["probability"] == "high"
    assert data["visibility"]["minimumLatitude"] == 52
    assert data["forecast"] == [{"time": "2026-02-10 06:00:00", "kp": 4.0, "observed": False}]
    assert data["fetchedAt"] == "2026-02-10T03:00:00.000Z"
    assert "Aurora: Kp 5.0 (minor), high [noaa]" in format_text(plan)
