import datetime

from stargazer.ephemeris.position import body_position, planet_positions, visible_planets
from stargazer.util.geo import Coordinates

import pytest

UTC = datetime.timezone.utc
GREENWICH = Coordinates(lat=51.4769, lng=0.0)


def test_sun_near_transit_at_equinox():
    pos = body_position("sun", GREENWICH, datetime.datetime(2026, 3, 20, 12, 7, tzinfo=UTC))
    assert pos.altitude == pytest.approx(90.0 - 51.4769, abs=1.0)
    assert pos.azimuth == pytest.approx(180.0, abs=3.0)
    assert pos.is_visible
    assert pos.distance == pytest.approx(1.0, abs=0.02)


def test_sun_below_horizon_at_midnight():
    pos = body_position("sun", GREENWICH, datetime.datetime(2026, 3, 20, 0, 0, tzinfo=UTC))
    assert pos.altitude < -30
    assert not pos.is_visible


def test_moon_distance_reported_in_au():
    pos = body_position("moon", GREENWICH, datetime.datetime(2026, 3, 20, tzinfo=UTC))
    assert 0.0023 < pos.distance < 0.0028


def test_unknown_body():
    with pytest.raises(ValueError):
        body_position("pluto", GREENWICH, datetime.datetime(2026, 3, 20, tzinfo=UTC))


def test_planet_positions_names():
    positions = planet_positions(GREENWICH, datetime.datetime(2026, 1, 10, tzinfo=UTC))
    assert set(positions) == {"Mercury", "Venus", "Mars", "Jupiter", "Saturn", "Uranus", "Neptune"}


def test_jupiter_up_at_midnight_near_opposition():
    when = datetime.datetime(2026, 1, 10, 0, 0, tzinfo=UTC)
    visible = visible_planets(GREENWICH, when)
    assert "Jupiter" in visible
    assert visible["Jupiter"].altitude > 50
    assert all(p.is_visible for p in visible.values())
