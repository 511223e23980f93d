"""Command line interface for planning routes and running navigation sessions."""

import argparse
import asyncio
import json
import logging
import sys
from typing import TYPE_CHECKING

import aiohttp
from pydantic import ValidationError

from station_navigation.adapters.config import AppConfig, StationCatalogLoader
from station_navigation.adapters.geolocation import NmeaPositionSource, ReplayPositionSource
from station_navigation.adapters.osrm_api import OsrmRouteClient
from station_navigation.adapters.presenters import (
    ConsoleMapPresenter,
    format_distance,
    format_duration,
)
from station_navigation.application import NavigationSession
from station_navigation.domain.errors import NavigationError
from station_navigation.domain.geo import sample_path
from station_navigation.domain.models import (
    Coordinate,
    NavigationState,
    RoutePlan,
    Station,
    TravelMode,
)
from station_navigation.main import configure_logging

if TYPE_CHECKING:
    from station_navigation.domain.ports import PositionSource

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.1


class TripNotStartedError(NavigationError):
    """The trip could not be prepared, so navigation never started."""

    kind = "trip_not_started"


def _coordinate(value: str) -> Coordinate:
    try:
        return Coordinate.parse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_route_client(session: aiohttp.ClientSession, config: AppConfig) -> OsrmRouteClient:
    """Create the OSRM client from configuration."""
    return OsrmRouteClient(
        session,
        base_url=config.osrm_base_url,
        timeout_seconds=config.route_timeout_seconds,
        min_delay_seconds=config.osrm_min_delay_seconds,
        log_requests=config.log_requests,
    )


def resolve_destination(
    config: AppConfig, station_id: str | None, destination: Coordinate | None
) -> Station:
    """Resolve the destination from the station catalogue or a bare coordinate."""
    if station_id is not None:
        station = StationCatalogLoader.find(StationCatalogLoader.load(config), station_id)
        if station is None:
            raise ValueError(f"Station {station_id!r} not found in {config.config_file}")
        return station
    if destination is None:
        raise ValueError("Either --station or --to is required")
    return Station(
        id="destination",
        name=f"Destination {destination}",
        address="",
        coordinate=destination,
    )


async def plan_once(
    config: AppConfig, origin: Coordinate, destination: Coordinate, mode: TravelMode
) -> RoutePlan:
    """Plan a single route."""
    async with aiohttp.ClientSession() as session:
        client = build_route_client(session, config)
        return await client.plan_route(origin, destination, mode)


async def wait_for_trip_end(session: NavigationSession) -> NavigationState:
    """Wait until the session arrives, stops, or its position stream ends."""
    while not session.state.is_terminal:
        if not session.subscription_active and session.pending_requests == 0:
            break
        await asyncio.sleep(POLL_INTERVAL_SECONDS)
    return session.state


async def prepare_trip(session: NavigationSession, station: Station, mode: TravelMode) -> bool:
    """Locate the user, select the station and mode, and wait for the preview plan.

    Returns:
        True if a route plan is ready to start.
    """
    if await session.locate_user() is None:
        return False
    session.select_station(station)
    session.select_mode(mode)
    await session.confirm_mode()
    return session.route_plan is not None


async def run_trip(
    config: AppConfig,
    position_source: "PositionSource",
    station: Station,
    mode: TravelMode,
    replay: ReplayPositionSource | None = None,
    step_meters: float = 100.0,
) -> NavigationState:
    """Run a full navigation session to the station.

    When a replay source is given it is loaded with points sampled along the
    preview plan before navigation starts.

    Raises:
        TripNotStartedError: The user could not be located or no plan was ready.
    """
    async with aiohttp.ClientSession() as http:
        route_client = build_route_client(http, config)
        async with NavigationSession(
            position_source,
            route_client,
            presenter=ConsoleMapPresenter(),
            arrival_threshold_meters=config.arrival_threshold_meters,
        ) as session:
            if not await prepare_trip(session, station, mode):
                error = session.last_error
                raise TripNotStartedError(
                    error.reason if error else "No route plan is ready",
                    status_code=error.status_code if error else None,
                )

            plan = session.route_plan
            if replay is not None and plan is not None:
                track = sample_path(plan.geometry or (plan.origin, plan.destination), step_meters)
                replay.load_coordinates(track)

            session.start_navigation()
            return await wait_for_trip_end(session)


def _print_plan(plan: RoutePlan, as_json: bool) -> None:
    if as_json:
        payload = {
            "mode": plan.mode.value,
            "distance_meters": plan.distance_meters,
            "duration_seconds": plan.duration_seconds,
            "geometry": [[c.latitude, c.longitude] for c in plan.geometry],
        }
        print(json.dumps(payload, indent=2))
        return
    print(f"Mode:     {plan.mode.label}")
    print(f"Distance: {format_distance(plan.distance_meters)}")
    print(f"Duration: {format_duration(plan.duration_seconds)}")
    print(f"Points:   {len(plan.geometry)}")


def _print_stations(stations: list[Station]) -> None:
    if not stations:
        print("No stations configured.", file=sys.stderr)
        return
    print(f"\nFound {len(stations)} station(s):\n")
    for station in stations:
        print(f"  {station.name} ({station.city or station.address or '-'})")
        print(f"    ID: {station.id}  at {station.coordinate}")
        if station.rating is not None:
            print(f"    Rating: {station.rating:.1f}")
        print()


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="Station navigation: route planning and live guidance",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Plan a route once
  station-nav route --from=-4.4419,15.2663 --to=-4.4350,15.2700 --mode walking

  # List stations from the TOML catalogue
  station-nav --config stations.toml stations

  # Simulate a trip along the planned route
  station-nav --config stations.toml simulate --from=-4.4419,15.2663 --station total-express

  # Navigate with the serial GPS receiver
  station-nav navigate --to=-4.4350,15.2700
        """,
    )
    parser.add_argument("--config", help="TOML station catalogue (overrides CONFIG_FILE)")
    parser.add_argument("--log-level", help="Logging level (overrides LOG_LEVEL)")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    route_parser = subparsers.add_parser("route", help="Plan a route once")
    route_parser.add_argument("--from", dest="origin", type=_coordinate, required=True)
    route_parser.add_argument("--to", dest="destination", type=_coordinate, required=True)
    route_parser.add_argument(
        "--mode", type=TravelMode, choices=list(TravelMode), default=TravelMode.DRIVING
    )
    route_parser.add_argument("--json", action="store_true", help="Output as JSON")

    subparsers.add_parser("stations", help="List stations from the catalogue")

    for name, help_text in (
        ("simulate", "Simulate a trip along the planned route"),
        ("navigate", "Navigate with the serial GPS receiver"),
    ):
        trip_parser = subparsers.add_parser(name, help=help_text)
        target = trip_parser.add_mutually_exclusive_group(required=True)
        target.add_argument("--station", help="Station ID from the catalogue")
        target.add_argument("--to", dest="destination", type=_coordinate)
        trip_parser.add_argument(
            "--mode", type=TravelMode, choices=list(TravelMode), default=TravelMode.DRIVING
        )
        if name == "simulate":
            trip_parser.add_argument("--from", dest="origin", type=_coordinate, required=True)
            trip_parser.add_argument(
                "--step", type=float, default=100.0, help="Metres between simulated fixes"
            )

    return parser


async def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    overrides: dict[str, str] = {}
    if args.config:
        overrides["config_file"] = args.config
    if args.log_level:
        overrides["log_level"] = args.log_level

    try:
        config = AppConfig(**overrides)
        configure_logging(config.log_level)

        if args.command == "route":
            plan = await plan_once(config, args.origin, args.destination, args.mode)
            _print_plan(plan, args.json)
            return 0

        if args.command == "stations":
            _print_stations(StationCatalogLoader.load(config))
            return 0

        station = resolve_destination(config, args.station, args.destination)
        if args.command == "simulate":
            replay = ReplayPositionSource.from_coordinates(
                [args.origin], interval_seconds=config.replay_interval_seconds
            )
            state = await run_trip(
                config, replay, station, args.mode, replay=replay, step_meters=args.step
            )
        else:
            source = NmeaPositionSource(
                config.gps_serial_port,
                config.gps_baud,
                permission_timeout_seconds=config.permission_timeout_seconds,
                position_timeout_seconds=config.position_timeout_seconds,
            )
            state = await run_trip(config, source, station, args.mode)
        return 0 if state is NavigationState.ARRIVED else 2

    except NavigationError as e:
        print(f"Error: {e.reason}", file=sys.stderr)
        return 1
    except ValidationError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1
    except (ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cli_main() -> None:
    """Synchronous entry point for the CLI command."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    cli_main()
