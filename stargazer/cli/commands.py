import asyncio
import datetime
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

import aiohttp

from stargazer.config import Config, load_config
from stargazer.ephemeris.moon import moon_info
from stargazer.ephemeris.search import calculate_sun_moon_times
from stargazer.ephemeris.seasons import season_boundaries, season_info
from stargazer.errors import ConfigError
from stargazer.planner.catalog import ReferenceCatalog
from stargazer.planner.events import generate_upcoming_events
from stargazer.planner.formatters import (
    aurora_to_dict,
    event_to_dict,
    format_text,
    iss_pass_to_dict,
    location_to_dict,
    plan_to_dict,
    weather_to_dict,
)
from stargazer.planner.inputs import NormalizedRequest, normalize_request
from stargazer.planner.planner import TonightPlanner
from stargazer.providers.aurora import fetch_aurora_forecast
from stargazer.providers.darksky import get_location_details, load_dark_sky_sites, score_dark_sky
from stargazer.providers.iss import fetch_iss_passes, fetch_iss_position
from stargazer.providers.weather import fetch_sky_quality
from stargazer.util.format import (
    azimuth_to_direction,
    format_clock,
    format_pass_time,
    isoformat_utc,
)
from stargazer.util.geo import Coordinates


def _json_envelope(command: str, ok: bool, data=None, error=None) -> dict:
    return {
        "ok": ok,
        "command": command,
        "timestamp_utc": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "data": data,
        "error": error,
    }


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _init_logging(level: str | None) -> None:
    if not level:
        return
    level_map = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warn": logging.WARNING,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }
    logging.basicConfig(level=level_map.get(level.lower(), logging.INFO))


def _config_path_from_args(args) -> Path | None:
    if args is None:
        return None
    path = getattr(args, "config", None)
    return Path(path) if path else None


def _load(args) -> Config:
    config = load_config(_config_path_from_args(args))
    _init_logging(getattr(args, "log_level", None) or config.log_level)
    return config


def _request_from_args(args, config: Config) -> NormalizedRequest:
    default = Coordinates(lat=config.site_latitude_deg, lng=config.site_longitude_deg)
    return normalize_request(
        getattr(args, "lat", None),
        getattr(args, "lng", None),
        getattr(args, "date", None),
        getattr(args, "days", None),
        default=default,
    )


def _handle_error(command: str, args, code: str, exc: Exception) -> int:
    if args is not None and getattr(args, "json", False):
        _print_json(
            _json_envelope(
                command=command,
                ok=False,
                error={"code": code, "message": str(exc), "details": None},
            )
        )
    else:
        print(str(exc), file=sys.stderr)
    return 2


def _clock(dt: datetime.datetime | None) -> str:
    return format_clock(dt) if dt is not None else "--"


async def _with_session(fn):
    async with aiohttp.ClientSession() as session:
        return await fn(session)


def run_doctor(args=None) -> int:
    try:
        config = _load(args)
    except (ConfigError, FileNotFoundError) as e:
        return _handle_error("doctor", args, "config_invalid", e)

    def check_catalog():
        try:
            catalog = ReferenceCatalog.load()
        except (OSError, ValueError, KeyError) as e:
            return {"ok": False, "detail": f"unreadable: {e}"}
        years = catalog.years()
        if not years:
            return {"ok": False, "detail": "no reference years"}
        return {"ok": True, "detail": f"years {min(years)}-{max(years)}"}

    def check_sites():
        try:
            sites = load_dark_sky_sites()
        except (OSError, ValueError, KeyError) as e:
            return {"ok": False, "detail": f"unreadable: {e}"}
        return {"ok": bool(sites), "detail": f"{len(sites)} sites"}

    checks = {
        "config": {"ok": True, "detail": "loaded (defaults applied if missing)"},
        "event_catalog": check_catalog(),
        "dark_sky_sites": check_sites(),
        f"weather ({config.weather_provider})": {
            "ok": True,
            "detail": "OpenWeather key set" if config.openweather_api_key else "Open-Meteo (no key needed)",
        },
        "iss_passes": {
            "ok": True,
            "detail": "N2YO key set" if config.n2yo_api_key else "Open Notify fallback",
        },
        f"planets ({config.planets_source})": {"ok": True, "detail": "local ephemeris fallback"},
        "aurora": {"ok": True, "detail": "NOAA SWPC (no key needed)"},
    }
    warnings = config.validate()
    ok = all(c["ok"] for c in checks.values())

    if args is not None and getattr(args, "json", False):
        _print_json(
            _json_envelope(
                command="doctor",
                ok=ok,
                data={"checks": checks, "warnings": warnings},
                error=None
                if ok
                else {
                    "code": "doctor_failed",
                    "message": "one or more checks failed",
                    "details": None,
                },
            )
        )
    else:
        print("Stargazer Doctor Report")
        print("=======================")
        for name, result in checks.items():
            status = "OK" if result["ok"] else "MISSING"
            print(f"{name:24} : {status} ({result['detail']})")
        for warning in warnings:
            print(f"warning: {warning}")
        if ok:
            print("\nSystem ready.")
        else:
            print("\nSome components are missing or not configured.")
    return 0 if ok else 1


def run_tonight(args) -> int:
    try:
        config = _load(args)
    except (ConfigError, FileNotFoundError) as e:
        return _handle_error("tonight", args, "config_invalid", e)
    request = _request_from_args(args, config)
    planner = TonightPlanner(config)
    plan = asyncio.run(planner.plan(request.coords, request.when))

    if getattr(args, "json", False):
        _print_json(_json_envelope(command="tonight", ok=True, data=plan_to_dict(plan)))
    else:
        print(format_text(plan))
    return 0


def run_events(args) -> int:
    try:
        config = _load(args)
    except (ConfigError, FileNotFoundError) as e:
        return _handle_error("events", args, "config_invalid", e)
    request = _request_from_args(args, config)
    events = generate_upcoming_events(request.coords, request.when, request.days)

    if getattr(args, "json", False):
        _print_json(
            _json_envelope(
                command="events",
                ok=True,
                data={"days": request.days, "events": [event_to_dict(e) for e in events]},
            )
        )
        return 0

    print(f"Upcoming events ({request.days} days)")
    for event in events:
        print(f"{event.date_display:<7} {event.type:<7} {event.title} [{event.visibility}, {event.visibility_score}]")
    if not events:
        print("No events in range.")
    return 0


def run_moon(args) -> int:
    try:
        config = _load(args)
    except (ConfigError, FileNotFoundError) as e:
        return _handle_error("moon", args, "config_invalid", e)
    request = _request_from_args(args, config)
    info = moon_info(request.coords, request.when)
    times = calculate_sun_moon_times(request.coords, request.when)

    if getattr(args, "json", False):
        data = asdict(info)
        data["rise"] = isoformat_utc(times.moonrise)
        data["set"] = isoformat_utc(times.moonset)
        _print_json(_json_envelope(command="moon", ok=True, data=data))
        return 0

    print(f"Moon: {info.name}")
    print(f"Illumination: {info.illumination:.1f}%")
    print(f"Age: {info.age:.1f} days")
    print(f"Altitude: {info.altitude:.1f}°  Azimuth: {info.azimuth:.1f}° ({azimuth_to_direction(info.azimuth)})")
    print(f"Distance: {info.distance:,.0f} km")
    print(f"Rise: {_clock(times.moonrise)}  Set: {_clock(times.moonset)}")
    return 0


def run_weather(args) -> int:
    try:
        config = _load(args)
    except (ConfigError, FileNotFoundError) as e:
        return _handle_error("weather", args, "config_invalid", e)
    request = _request_from_args(args, config)
    weather = asyncio.run(_with_session(lambda session: fetch_sky_quality(session, request.coords, config)))

    if getattr(args, "json", False):
        _print_json(_json_envelope(command="weather", ok=True, data=weather_to_dict(weather)))
        return 0

    print(f"Source: {weather.source}")
    print(f"Clouds: {weather.cloud_cover:.0f}%  Humidity: {weather.humidity:.0f}%")
    print(f"Wind: {weather.wind_speed:.1f} m/s  Temperature: {weather.temperature:.1f}°C")
    print(f"Transparency: {weather.transparency:.0f}  Seeing: {weather.seeing}")
    print(f"Quality: {weather.quality}")
    return 0


def run_aurora(args) -> int:
    try:
        config = _load(args)
    except (ConfigError, FileNotFoundError) as e:
        return _handle_error("aurora", args, "config_invalid", e)
    request = _request_from_args(args, config)
    aurora = asyncio.run(_with_session(lambda session: fetch_aurora_forecast(session, request.coords, config)))

    if getattr(args, "json", False):
        data = aurora_to_dict(aurora)
        data["location"] = {"lat": request.coords.lat}
        _print_json(_json_envelope(command="aurora", ok=True, data=data))
        return 0

    print(f"Kp: {aurora.kp:.1f} ({aurora.storm_level}) [{aurora.source}]")
    print(aurora.description)
    print(f"Visibility: {aurora.probability} (aurora boundary near {aurora.minimum_latitude}°)")
    print(aurora.message)
    for reading in aurora.forecast:
        observed = " (observed)" if reading.observed else ""
        print(f"  {reading.time}  Kp {reading.kp:.1f}{observed}")
    return 0


def run_iss(args) -> int:
    try:
        config = _load(args)
    except (ConfigError, FileNotFoundError) as e:
        return _handle_error("iss", args, "config_invalid", e)
    request = _request_from_args(args, config)
    count = getattr(args, "count", None) or config.iss_pass_count

    async def fetch(session):
        return await asyncio.gather(
            fetch_iss_passes(session, request.coords, config, count=count),
            fetch_iss_position(session, config),
        )

    passes, position = asyncio.run(_with_session(fetch))

    if getattr(args, "json", False):
        _print_json(
            _json_envelope(
                command="iss",
                ok=True,
                data={
                    "passes": [iss_pass_to_dict(p) for p in passes],
                    "position": asdict(position) if position is not None else None,
                },
            )
        )
        return 0

    if position is not None:
        print(
            f"ISS now: lat {position.latitude:.2f}°, lng {position.longitude:.2f}°, "
            f"{position.altitude:.0f} km [{position.source}]"
        )
    else:
        print("ISS position unavailable")
    if not passes:
        print("No passes available.")
    for item in passes:
        print(
            f"{format_pass_time(item.risetime, item.duration)}  max {item.max_altitude:.0f}°  "
            f"{azimuth_to_direction(item.rise_azimuth)} → {azimuth_to_direction(item.set_azimuth)}  {item.brightness}"
        )
    return 0


def run_locations(args) -> int:
    try:
        config = _load(args)
    except (ConfigError, FileNotFoundError) as e:
        return _handle_error("locations", args, "config_invalid", e)
    request = _request_from_args(args, config)

    location_id = getattr(args, "id", None)
    if location_id:
        site = get_location_details(location_id, request.when)
        if site is None:
            return _handle_error("locations", args, "not_found", LookupError(f"Unknown location: {location_id}"))
        if getattr(args, "json", False):
            _print_json(_json_envelope(command="locations", ok=True, data=location_to_dict(site)))
        else:
            print(f"{site.name} ({site.id})")
            print(f"Score {site.dark_sky_score}, Bortle {site.bortle_class}, {site.elevation:.0f} m")
            print(f"Best window: {site.best_window}")
            print(site.description)
        return 0

    illumination = moon_info(request.coords, request.when).illumination
    report = score_dark_sky(
        request.coords,
        illumination,
        max_distance=getattr(args, "max_distance", None) or 200,
        limit=getattr(args, "limit", None) or 10,
        when=request.when,
    )

    if getattr(args, "json", False):
        _print_json(
            _json_envelope(
                command="locations",
                ok=True,
                data={
                    "userScore": report.user_score,
                    "moonPenalty": report.moon_penalty,
                    "weatherAdjustment": report.weather_adjustment,
                    "locations": [location_to_dict(s) for s in report.locations],
                },
            )
        )
        return 0

    print(f"Your sky: {report.user_score} (moon -{report.moon_penalty})")
    for site in report.locations:
        print(f"{site.dark_sky_score:>3}  {site.name:<36} {site.distance_display:>7}  {site.best_window}")
    if not report.locations:
        print("No dark-sky sites in range.")
    return 0


def run_seasons(args) -> int:
    try:
        config = _load(args)
    except (ConfigError, FileNotFoundError) as e:
        return _handle_error("seasons", args, "config_invalid", e)
    request = _request_from_args(args, config)
    info = season_info(request.when)
    boundaries = season_boundaries(request.when.year)

    if getattr(args, "json", False):
        _print_json(
            _json_envelope(
                command="seasons",
                ok=True,
                data={
                    "current": info.current,
                    "nextEvent": {"name": info.next_event_name, "date": isoformat_utc(info.next_event_date)},
                    "boundaries": {name: isoformat_utc(when) for name, when in boundaries.items()},
                },
            )
        )
        return 0

    print(f"Season: {info.current}")
    print(f"Next: {info.next_event_name} on {info.next_event_date:%Y-%m-%d %H:%M} UTC")
    for name, when in boundaries.items():
        print(f"  {name:<20} {when:%Y-%m-%d %H:%M} UTC")
    return 0
