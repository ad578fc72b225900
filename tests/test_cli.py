import datetime
import json
from unittest.mock import patch

import pytest

from stargazer import __version__
from stargazer.cli.main import build_parser, main
from stargazer.providers.aurora import build_aurora_forecast
from stargazer.providers.types import IssPass, IssPosition, SkyQuality

CLEAR_SKY = SkyQuality(
    cloud_cover=10.0,
    humidity=30.0,
    wind_speed=5.0,
    temperature=12.0,
    transparency=90.0,
    quality=84,
    seeing="excellent",
    source="openmeteo",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("OPENWEATHER_API_KEY", "N2YO_API_KEY", "WEATHER_API_PROVIDER"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[site]\nlatitude_deg = 36.1147\nlongitude_deg = -115.1728\n")
    return str(path)


def _json_out(capsys):
    return json.loads(capsys.readouterr().out)


def test_version(capsys):
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == f"Stargazer {__version__}"


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "usage: stargazer" in capsys.readouterr().out


def test_parser_knows_every_command():
    parser = build_parser()
    args = parser.parse_args(["iss", "--count", "2", "--lat", "10", "--lng", "20"])
    assert (args.command, args.count, args.lat, args.lng) == ("iss", 2, "10", "20")


def test_doctor_json(config_path, capsys):
    assert main(["doctor", "--json", "--config", config_path]) == 0
    out = _json_out(capsys)
    assert out["ok"] is True
    assert out["command"] == "doctor"
    checks = out["data"]["checks"]
    assert checks["event_catalog"]["ok"] is True
    assert checks["dark_sky_sites"]["ok"] is True
    assert checks["iss_passes"]["detail"] == "Open Notify fallback"
    assert any("N2YO_API_KEY" in w for w in out["data"]["warnings"])


def test_doctor_text(config_path, capsys):
    assert main(["doctor", "--config", config_path]) == 0
    out = capsys.readouterr().out
    assert "Stargazer Doctor Report" in out
    assert "System ready." in out


def test_missing_config_file_is_reported(tmp_path, capsys):
    missing = str(tmp_path / "nope.toml")
    assert main(["events", "--json", "--config", missing]) == 2
    out = _json_out(capsys)
    assert out["ok"] is False
    assert out["error"]["code"] == "config_invalid"


def test_invalid_toml_is_reported(tmp_path, capsys):
    path = tmp_path / "config.toml"
    path.write_text("[site\n")
    assert main(["moon", "--json", "--config", str(path)]) == 2
    assert _json_out(capsys)["error"]["code"] == "config_invalid"


def test_events_json(config_path, capsys):
    assert main(["events", "--json", "--config", config_path, "--date", "2026-02-01", "--days", "30"]) == 0
    out = _json_out(capsys)
    assert out["data"]["days"] == 30
    titles = [e["title"] for e in out["data"]["events"]]
    assert "Venus at Greatest Elongation East" in titles
    assert "Full Moon" in titles
    dates = [e["date"] for e in out["data"]["events"]]
    assert dates == sorted(dates)


def test_events_days_are_clamped(config_path, capsys):
    assert main(["events", "--json", "--config", config_path, "--date", "2026-02-01", "--days", "9999"]) == 0
    assert _json_out(capsys)["data"]["days"] == 365


def test_moon_json(config_path, capsys):
    argv = ["moon", "--json", "--config", config_path, "--lat", "51.48", "--lng", "0", "--date", "2026-03-03T12:00:00Z"]
    assert main(argv) == 0
    data = _json_out(capsys)["data"]
    assert data["name"] == "Full Moon"
    assert data["illumination"] > 95
    assert "rise" in data and "set" in data


def test_seasons_json(config_path, capsys):
    assert main(["seasons", "--json", "--config", config_path, "--date", "2026-04-01T00:00:00Z"]) == 0
    data = _json_out(capsys)["data"]
    assert data["current"] == "Spring"
    assert data["nextEvent"]["name"] == "June Solstice"
    assert data["nextEvent"]["date"].startswith("2026-06-21")
    assert set(data["boundaries"]) == {"March Equinox", "June Solstice", "September Equinox", "December Solstice"}


def test_seasons_text(config_path, capsys):
    assert main(["seasons", "--config", config_path, "--date", "2026-04-01T00:00:00Z"]) == 0
    out = capsys.readouterr().out
    assert "Season: Spring" in out
    assert "Next: June Solstice" in out


def test_locations_json(config_path, capsys):
    argv = ["locations", "--json", "--config", config_path, "--max-distance", "150", "--date", "2026-02-01"]
    assert main(argv) == 0
    data = _json_out(capsys)["data"]
    ids = [site["id"] for site in data["locations"]]
    assert ids[0] == "valley-fire-nv"
    assert "red-rock-nv" in ids
    assert "death-valley-ca" not in ids


def test_locations_by_id(config_path, capsys):
    assert main(["locations", "--json", "--config", config_path, "--id", "red-rock-nv"]) == 0
    assert _json_out(capsys)["data"]["id"] == "red-rock-nv"


def test_unknown_location_id(config_path, capsys):
    assert main(["locations", "--json", "--config", config_path, "--id", "atlantis"]) == 2
    out = _json_out(capsys)
    assert out["error"]["code"] == "not_found"
    assert "atlantis" in out["error"]["message"]


def test_weather_json(config_path, capsys):
    with patch("stargazer.cli.commands.fetch_sky_quality", return_value=CLEAR_SKY):
        assert main(["weather", "--json", "--config", config_path]) == 0
    data = _json_out(capsys)["data"]
    assert data["quality"] == 84
    assert data["source"] == "openmeteo"


def test_iss_text(config_path, capsys):
    rise = datetime.datetime(2026, 2, 10, 4, 12, tzinfo=datetime.timezone.utc)
    passes = [IssPass(risetime=rise, duration=360, rise_azimuth=300.0, max_altitude=45.4, set_azimuth=120.0, brightness="visible")]
    position = IssPosition(latitude=12.5, longitude=-45.25, altitude=420.0, velocity=27600.0, timestamp=rise, source="wheretheiss")
    with (
        patch("stargazer.cli.commands.fetch_iss_passes", return_value=passes) as fetch_passes,
        patch("stargazer.cli.commands.fetch_iss_position", return_value=position),
    ):
        assert main(["iss", "--config", config_path, "--count", "2"]) == 0
    assert fetch_passes.call_args.kwargs["count"] == 2
    out = capsys.readouterr().out
    assert "ISS now: lat 12.50°, lng -45.25°, 420 km [wheretheiss]" in out
    assert "max 45°" in out


def test_tonight_json(config_path, capsys):
    with (
        patch("stargazer.planner.planner.fetch_sky_quality", return_value=CLEAR_SKY),
        patch("stargazer.planner.planner.fetch_iss_passes", return_value=[]),
        patch("stargazer.planner.planner.fetch_visible_planets", return_value=[]),
        patch("stargazer.planner.planner.estimate_dark_sky_score", return_value=70),
        patch("stargazer.planner.planner.fetch_aurora_forecast", return_value=build_aurora_forecast(3.0, 36.1147, source="noaa")),
    ):
        assert main(["tonight", "--json", "--config", config_path, "--date", "2026-02-09"]) == 0
    out = _json_out(capsys)
    assert out["ok"] is True
    data = out["data"]
    assert data["weather"]["quality"] == 84
    assert data["localDarkSkyScore"] == 70
    titles = [e["title"] for e in data["tonightEvents"]]
    assert "Venus at Greatest Elongation East" in titles
    assert "Last Quarter Moon" in titles
    assert 0 <= data["overallQuality"]["score"] <= 100
    assert data["aurora"]["visibility"]["probability"] == "none"


def test_aurora_json(config_path, capsys):
    forecast = build_aurora_forecast(5.0, 65.0, source="noaa")
    with patch("stargazer.cli.commands.fetch_aurora_forecast", return_value=forecast):
        assert main(["aurora", "--json", "--config", config_path, "--lat", "65", "--lng", "-147.7"]) == 0
    data = _json_out(capsys)["data"]
    assert data["current"]["stormLevel"] == "minor"
    assert data["visibility"]["probability"] == "high"
    assert data["location"] == {"lat": 65.0}


def test_aurora_text(config_path, capsys):
    forecast = build_aurora_forecast(2.0, 36.1147, source="estimated")
    with patch("stargazer.cli.commands.fetch_aurora_forecast", return_value=forecast):
        assert main(["aurora", "--config", config_path]) == 0
    out = capsys.readouterr().out
    assert "Kp: 2.0 (none) [estimated]" in out
    assert "Visibility: none (aurora boundary near 61°)" in out
