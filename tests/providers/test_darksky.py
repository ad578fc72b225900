import datetime

from stargazer.providers.darksky import (
    LightSource,
    estimate_dark_sky_score,
    find_nearby_locations,
    get_location_details,
    moon_penalty,
    recommend_locations,
    score_dark_sky,
    weather_adjustment,
)
from stargazer.util.geo import Coordinates

UTC = datetime.timezone.utc
LAS_VEGAS = Coordinates(lat=36.1147, lng=-115.1728)
WHEN = datetime.datetime(2026, 2, 10, 3, 0, tzinfo=UTC)


def test_estimate_score_in_city():
    assert estimate_dark_sky_score(LAS_VEGAS) == 35


def test_estimate_score_far_from_cities():
    assert estimate_dark_sky_score(Coordinates(lat=0.0, lng=0.0)) == 100


def test_estimate_score_with_custom_sources():
    source = LightSource(name="Town", coordinates=Coordinates(lat=0.0, lng=0.0))
    assert estimate_dark_sky_score(Coordinates(lat=0.0, lng=0.3), [source]) == 65
    assert estimate_dark_sky_score(Coordinates(lat=0.0, lng=0.3), []) == 100


def test_nearby_locations_ranked():
    sites = find_nearby_locations(LAS_VEGAS, max_distance=150, when=WHEN)
    assert [s.id for s in sites] == ["valley-fire-nv", "red-rock-nv"]
    red_rock = sites[1]
    assert 20 < red_rock.distance < 27
    assert red_rock.distance_display.endswith(" mi")
    assert " – " in red_rock.best_window


def test_nearby_locations_limit_and_radius():
    assert len(find_nearby_locations(LAS_VEGAS, max_distance=200, when=WHEN)) == 3
    assert len(find_nearby_locations(LAS_VEGAS, max_distance=200, limit=1, when=WHEN)) == 1
    assert find_nearby_locations(Coordinates(lat=0.0, lng=0.0), when=WHEN) == []


def test_nearby_locations_do_not_mutate_catalog():
    find_nearby_locations(LAS_VEGAS, when=WHEN)
    details = get_location_details("red-rock-nv", WHEN)
    assert details.distance == 0.0
    assert details.dark_sky_score == 72


def test_recommend_locations_filters():
    assert [s.id for s in recommend_locations(LAS_VEGAS, min_quality=80, when=WHEN)] == ["valley-fire-nv"]
    assert recommend_locations(LAS_VEGAS, accessibility=["difficult"], when=WHEN) == []
    scenic = recommend_locations(LAS_VEGAS, amenities=["Scenic Route"], when=WHEN)
    assert [s.id for s in scenic] == ["red-rock-nv"]


def test_location_details():
    site = get_location_details("great-basin-nv", WHEN)
    assert site.name == "Great Basin National Park"
    assert "Camping" in site.amenities
    assert site.best_window
    assert get_location_details("nowhere", WHEN) is None


def test_penalties():
    assert moon_penalty(45) == 5
    assert moon_penalty(100) == 10
    assert weather_adjustment(None) == 0
    assert weather_adjustment(90) == 6
    assert weather_adjustment(10) == -10


def test_score_dark_sky_full_moon():
    report = score_dark_sky(LAS_VEGAS, 100, 60, when=WHEN)
    assert report.user_score == 25
    assert report.moon_penalty == 10
    assert report.weather_adjustment == 0
    assert [(s.id, s.dark_sky_score) for s in report.locations] == [
        ("death-valley-ca", 81),
        ("valley-fire-nv", 75),
        ("red-rock-nv", 61),
    ]


def test_score_dark_sky_clamps():
    report = score_dark_sky(LAS_VEGAS, 100, 0, base_score=20, when=WHEN)
    assert report.user_score == 20
    assert all(25 <= s.dark_sky_score <= 99 for s in report.locations)
