import datetime

from stargazer.util.format import (
    as_utc,
    azimuth_to_direction,
    format_clock,
    format_distance,
    format_pass_time,
    format_short_date,
    format_time_range,
    isoformat_utc,
    round_half_up,
    slugify,
)

UTC = datetime.timezone.utc


def test_round_half_up_positive_half():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1


def test_round_half_up_negative_half_rounds_toward_positive():
    assert round_half_up(-2.5) == -2


def test_round_half_up_returns_int_without_digits():
    assert isinstance(round_half_up(41.6), int)
    assert round_half_up(41.6) == 42


def test_round_half_up_one_decimal():
    assert round_half_up(1.25, 1) == 1.3
    assert round_half_up(7.04, 1) == 7.0


def test_format_clock_twelve_hour():
    assert format_clock(datetime.datetime(2026, 2, 9, 22, 5, tzinfo=UTC)) == "10:05 PM"
    assert format_clock(datetime.datetime(2026, 2, 9, 0, 0, tzinfo=UTC)) == "12:00 AM"
    assert format_clock(datetime.datetime(2026, 2, 9, 12, 30, tzinfo=UTC)) == "12:30 PM"


def test_format_clock_uses_given_zone():
    tz = datetime.timezone(datetime.timedelta(hours=-8))
    assert format_clock(datetime.datetime(2026, 2, 10, 6, 0, tzinfo=UTC), tz) == "10:00 PM"


def test_format_time_range():
    start = datetime.datetime(2026, 2, 9, 22, 0, tzinfo=UTC)
    end = datetime.datetime(2026, 2, 10, 4, 0, tzinfo=UTC)
    assert format_time_range(start, end) == "10:00 PM – 4:00 AM"


def test_format_short_date():
    assert format_short_date(datetime.datetime(2026, 2, 9, tzinfo=UTC)) == "Feb 9"


def test_format_distance():
    assert format_distance(100, metric=True) == "100 km"
    assert format_distance(0.5, metric=True) == "500 m"
    assert format_distance(100) == "62 mi"


def test_azimuth_to_direction():
    assert azimuth_to_direction(0) == "N"
    assert azimuth_to_direction(90) == "E"
    assert azimuth_to_direction(225) == "SW"
    assert azimuth_to_direction(359) == "N"
    assert azimuth_to_direction(-90) == "W"


def test_format_pass_time():
    rise = datetime.datetime(2026, 2, 9, 21, 30, tzinfo=UTC)
    assert format_pass_time(rise, 360) == "9:30 PM (6 min)"


def test_isoformat_utc():
    dt = datetime.datetime(2026, 2, 17, 12, 0, tzinfo=UTC)
    assert isoformat_utc(dt) == "2026-02-17T12:00:00.000Z"
    assert isoformat_utc(None) is None


def test_isoformat_utc_converts_offsets():
    tz = datetime.timezone(datetime.timedelta(hours=2))
    dt = datetime.datetime(2026, 2, 17, 14, 0, tzinfo=tz)
    assert isoformat_utc(dt) == "2026-02-17T12:00:00.000Z"


def test_slugify():
    assert slugify("Perseids Peak!") == "perseids-peak"
    assert slugify("  Venus -- Jupiter  ") == "venus-jupiter"


def test_as_utc_naive_is_utc():
    dt = as_utc(datetime.datetime(2026, 1, 1, 5))
    assert dt.tzinfo == UTC
    assert dt.hour == 5
