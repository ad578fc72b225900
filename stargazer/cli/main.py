import argparse
import sys

from stargazer import __version__
from stargazer.cli import commands


def _common_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", help="Path to config.toml")
    common.add_argument("--log-level", dest="log_level", choices=["debug", "info", "warn", "error"])
    common.add_argument("--json", action="store_true", help="Output result as JSON")
    common.add_argument("--lat", help="Observer latitude in degrees")
    common.add_argument("--lng", help="Observer longitude in degrees")
    common.add_argument("--date", help="ISO date or instant (default: now)")
    return common


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stargazer")
    parser.add_argument("--version", action="store_true", help="Show version and exit")
    common = _common_parser()

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("doctor", parents=[common], help="Check configuration and reference data")
    subparsers.add_parser("tonight", parents=[common], help="Tonight's observing plan")

    events_parser = subparsers.add_parser("events", parents=[common], help="Upcoming sky events")
    events_parser.add_argument("--days", help="Days ahead (1-365, default 60)")

    subparsers.add_parser("moon", parents=[common], help="Moon phase and position")
    subparsers.add_parser("weather", parents=[common], help="Current sky quality")
    subparsers.add_parser("aurora", parents=[common], help="Aurora outlook from the Kp index")

    iss_parser = subparsers.add_parser("iss", parents=[common], help="ISS passes and live position")
    iss_parser.add_argument("--count", type=int, help="Number of passes (1-10)")

    locations_parser = subparsers.add_parser("locations", parents=[common], help="Nearby dark-sky sites")
    locations_parser.add_argument("--id", help="Show one site by id")
    locations_parser.add_argument("--max-distance", dest="max_distance", type=float, help="Search radius in km")
    locations_parser.add_argument("--limit", type=int, help="Maximum number of sites")

    subparsers.add_parser("seasons", parents=[common], help="Current season and equinox/solstice dates")
    return parser


COMMANDS = {
    "doctor": commands.run_doctor,
    "tonight": commands.run_tonight,
    "events": commands.run_events,
    "moon": commands.run_moon,
    "weather": commands.run_weather,
    "aurora": commands.run_aurora,
    "iss": commands.run_iss,
    "locations": commands.run_locations,
    "seasons": commands.run_seasons,
}


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"Stargazer {__version__}")
        return 0

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 0
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
