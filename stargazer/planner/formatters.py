import datetime
import json
from dataclasses import asdict

from stargazer.providers.types import AuroraForecast, DarkSkyLocation, IssPass, SkyQuality, VisiblePlanet
from stargazer.util.format import (
    azimuth_to_direction,
    format_clock,
    format_pass_time,
    format_short_date,
    isoformat_utc,
)

from .types import AstronomyEvent, MeteorShower, TonightPlan


def _date(value: datetime.date) -> str:
    return value.isoformat()


def event_to_dict(event: AstronomyEvent) -> dict:
    data = {
        "id": event.id,
        "title": event.title,
        "date": isoformat_utc(event.date),
        "dateDisplay": event.date_display,
        "window": event.window,
        "visibility": event.visibility,
        "visibilityScore": event.visibility_score,
        "summary": event.summary,
        "type": event.type,
    }
    if event.peak is not None:
        data["peak"] = event.peak
    return data


def shower_to_dict(shower: MeteorShower) -> dict:
    return {
        "name": shower.name,
        "peak": _date(shower.peak),
        "zhr": shower.zhr,
        "activeStart": _date(shower.active_start),
        "activeEnd": _date(shower.active_end),
    }


def weather_to_dict(weather: SkyQuality | None) -> dict | None:
    if weather is None:
        return None
    return {
        "cloudCover": weather.cloud_cover,
        "humidity": weather.humidity,
        "windSpeed": weather.wind_speed,
        "temperature": weather.temperature,
        "transparency": weather.transparency,
        "quality": weather.quality,
        "seeing": weather.seeing,
        "source": weather.source,
    }


def planet_to_dict(planet: VisiblePlanet) -> dict:
    return {
        "name": planet.name,
        "type": planet.type,
        "bestAltitude": planet.best_altitude,
        "bestTime": isoformat_utc(planet.best_time),
        "visible": planet.visible,
        "source": planet.source,
    }


def iss_pass_to_dict(item: IssPass) -> dict:
    return {
        "risetime": isoformat_utc(item.risetime),
        "duration": item.duration,
        "riseAzimuth": item.rise_azimuth,
        "maxAltitude": item.max_altitude,
        "setAzimuth": item.set_azimuth,
        "brightness": item.brightness,
        "formatted": format_pass_time(item.risetime, item.duration),
    }


def aurora_to_dict(aurora: AuroraForecast | None) -> dict | None:
    if aurora is None:
        return None
    return {
        "current": {
            "kp": aurora.kp,
            "stormLevel": aurora.storm_level,
            "description": aurora.description,
        },
        "forecast": [asdict(r) for r in aurora.forecast],
        "visibility": {
            "probability": aurora.probability,
            "minimumLatitude": aurora.minimum_latitude,
            "message": aurora.message,
        },
        "source": aurora.source,
        "fetchedAt": isoformat_utc(aurora.fetched_at),
    }


def location_to_dict(site: DarkSkyLocation) -> dict:
    return {
        "id": site.id,
        "name": site.name,
        "coordinates": asdict(site.coordinates),
        "darkSkyScore": site.dark_sky_score,
        "bortleClass": site.bortle_class,
        "elevation": site.elevation,
        "description": site.description,
        "amenities": list(site.amenities),
        "accessibility": site.accessibility,
        "type": site.type,
        "distance": site.distance,
        "distanceDisplay": site.distance_display,
        "bestWindow": site.best_window,
    }


def plan_to_dict(plan: TonightPlan) -> dict:
    window = plan.optimal_window
    data = {
        "location": asdict(plan.location),
        "date": isoformat_utc(plan.date),
        "moon": {
            "phase": plan.moon.phase.name,
            "illumination": plan.moon.phase.illumination,
            "age": plan.moon.phase.age,
            "rise": isoformat_utc(plan.moon.rise),
            "set": isoformat_utc(plan.moon.set),
        },
        "sun": {
            "sunset": isoformat_utc(plan.sun.sunset),
            "sunrise": isoformat_utc(plan.sun.sunrise),
            "astronomicalDusk": isoformat_utc(plan.sun.astronomical_dusk),
            "astronomicalDawn": isoformat_utc(plan.sun.astronomical_dawn),
        },
        "optimalWindow": {
            "start": isoformat_utc(window.start),
            "end": isoformat_utc(window.end),
            "quality": window.quality,
            "duration": window.duration_hours,
        },
        "localDarkSkyScore": plan.local_dark_sky_score,
        "weather": weather_to_dict(plan.weather),
        "visiblePlanets": [planet_to_dict(p) for p in plan.visible_planets],
        "tonightEvents": [event_to_dict(e) for e in plan.tonight_events],
        "activeShowers": [shower_to_dict(s) for s in plan.active_showers],
        "issPasses": [iss_pass_to_dict(p) for p in plan.iss_passes],
        "aurora": aurora_to_dict(plan.aurora),
        "recommendations": [asdict(r) for r in plan.recommendations],
        "overallQuality": asdict(plan.overall_quality),
        "generatedAt": isoformat_utc(plan.generated_at),
    }
    if plan.warnings:
        data["warnings"] = list(plan.warnings)
    return data


def format_json(plan: TonightPlan) -> str:
    return json.dumps(plan_to_dict(plan), indent=2)


def _clock(dt: datetime.datetime | None, tz: datetime.tzinfo | None) -> str:
    if dt is None:
        return "--"
    return format_clock(dt, tz)


def format_text(plan: TonightPlan, tz: datetime.tzinfo | None = None) -> str:
    lines: list[str] = []
    moon = plan.moon.phase
    window = plan.optimal_window
    quality = plan.overall_quality

    lines.append("Stargazer Tonight")
    lines.append("=================")
    lines.append(f"Location: lat {plan.location.lat:.3f}°, lng {plan.location.lng:.3f}°")
    lines.append(f"Date: {format_short_date(plan.date)}")
    lines.append(f"Overall: {quality.score} ({quality.rating}) - {quality.description}")
    lines.append("")
    lines.append(f"Sun: set {_clock(plan.sun.sunset, tz)}, rise {_clock(plan.sun.sunrise, tz)}")
    lines.append(
        f"Dark: {_clock(plan.sun.astronomical_dusk, tz)} → {_clock(plan.sun.astronomical_dawn, tz)}"
    )
    lines.append(
        f"Moon: {moon.name}, {moon.illumination:.1f}% lit, age {moon.age:.1f} d "
        f"(rise {_clock(plan.moon.rise, tz)}, set {_clock(plan.moon.set, tz)})"
    )
    lines.append(
        f"Window: {_clock(window.start, tz)} → {_clock(window.end, tz)} "
        f"({window.duration_hours:.1f} h, quality {window.quality}, moon {window.moon_interference})"
    )
    lines.append(f"Dark-sky score: {plan.local_dark_sky_score}")
    if plan.weather is not None:
        w = plan.weather
        lines.append(
            f"Weather: {w.cloud_cover:.0f}% clouds, {w.humidity:.0f}% humidity, "
            f"seeing {w.seeing}, quality {w.quality} [{w.source}]"
        )
    else:
        lines.append("Weather: unavailable")
    if plan.aurora is not None:
        a = plan.aurora
        lines.append(f"Aurora: Kp {a.kp:.1f} ({a.storm_level}), {a.probability} [{a.source}]")

    if plan.visible_planets:
        lines.append("")
        lines.append("Planets")
        lines.append("-------")
        for planet in plan.visible_planets:
            lines.append(f" {planet.name:<8} alt {planet.best_altitude:.0f}° at {_clock(planet.best_time, tz)}")

    if plan.iss_passes:
        lines.append("")
        lines.append("ISS passes")
        lines.append("----------")
        for item in plan.iss_passes:
            lines.append(
                f" {format_pass_time(item.risetime, item.duration, tz)}  max {item.max_altitude:.0f}°  "
                f"{azimuth_to_direction(item.rise_azimuth)} → {azimuth_to_direction(item.set_azimuth)}"
            )

    if plan.tonight_events or plan.active_showers:
        lines.append("")
        lines.append("Events")
        lines.append("------")
        for event in plan.tonight_events:
            lines.append(f" {event.date_display:<6} {event.title} ({event.visibility})")
        for shower in plan.active_showers:
            lines.append(f" {shower.name} active, ZHR {shower.zhr}, peak {format_short_date(shower.peak)}")

    lines.append("")
    lines.append("Recommendations")
    lines.append("---------------")
    for idx, rec in enumerate(plan.recommendations, start=1):
        timing = f" [{rec.timing}]" if rec.timing else ""
        lines.append(f"{idx:>2}. {rec.title}: {rec.description}{timing}")

    for warning in plan.warnings:
        lines.append(f"Warning: {warning}")
    return "\n".join(lines)
