"""Command-line entry point: find the nearest reachable restroom and open navigation."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .config import load_settings
from .errors import LAUNCH_FAILED_MESSAGE, AllCandidatesExhausted, LocationUnavailable
from .geo import format_distance, format_route
from .links import known_engines
from .models import Coordinate, LocationFix, TravelMode
from .seed import DEFAULT_CENTER
from .service import build_finder

logger = logging.getLogger("restroom_nav")

EXIT_OK = 0
EXIT_NOTHING_FOUND = 1
EXIT_LAUNCH_FAILED = 2


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="restroom_nav", description=__doc__)
    parser.add_argument("--lat", type=float, default=DEFAULT_CENTER["lat"], help="Current latitude")
    parser.add_argument("--lng", type=float, default=DEFAULT_CENTER["lng"], help="Current longitude")
    parser.add_argument("--radius", type=float, default=None, help="Search radius in meters")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in TravelMode],
        default=TravelMode.WALKING.value,
        help="Travel mode",
    )
    parser.add_argument("--time-limit", type=float, default=None, help="Maximum travel time in minutes")
    parser.add_argument("--engine", choices=list(known_engines()), default=None, help="Preferred navigation app")
    parser.add_argument("--dry-run", action="store_true", help="Print navigation links instead of opening them")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    settings = load_settings()
    finder = build_finder(settings)
    fix = LocationFix(coordinate=Coordinate.from_lat_lng(args.lat, args.lng))
    mode = TravelMode(args.mode)

    if args.dry_run:
        result = await finder.find(fix, radius_meters=args.radius, mode=mode, time_limit_minutes=args.time_limit)
        if result.best is None:
            print(result.message)
            return EXIT_NOTHING_FOUND
        _print_choice(result.best.poi, result.best.estimate)
        engine = args.engine or finder.settings_store.preferred_engine()
        for candidate in finder.dispatcher.candidates_for(result.best.poi, mode, engine):
            print(f"  [{candidate.rank}] {candidate.engine}: {candidate.uri}")
        return EXIT_OK

    try:
        report = await finder.find_and_navigate(
            fix,
            radius_meters=args.radius,
            mode=mode,
            time_limit_minutes=args.time_limit,
            preferred_engine=args.engine,
        )
    except AllCandidatesExhausted as exc:
        logger.debug("Dispatch exhausted: %s", exc)
        print(LAUNCH_FAILED_MESSAGE)
        return EXIT_LAUNCH_FAILED

    if report.find.best is None:
        print(report.find.message)
        return EXIT_NOTHING_FOUND
    _print_choice(report.find.best.poi, report.find.best.estimate)
    if report.outcome is not None:
        print(f"Opened {report.outcome.succeeded_engine}")
    return EXIT_OK


def _print_choice(poi, estimate) -> None:
    line = poi.name
    if poi.distance_meters is not None:
        line += f" ({format_distance(poi.distance_meters)} away)"
    print(line)
    if poi.address:
        print(f"  {poi.address}")
    if estimate is not None:
        print(f"  {format_route(estimate)}")


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except LocationUnavailable as exc:
        print(exc.user_message)
        return EXIT_NOTHING_FOUND
    except ValueError as exc:
        print(f"Invalid location: {exc}", file=sys.stderr)
        return EXIT_NOTHING_FOUND


if __name__ == "__main__":
    sys.exit(main())
