"""Command-line interface for boards, train identification and journey planning."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from onward_journeys.adapters.config import AppConfig
from onward_journeys.domain.errors import (
    InvalidAnchor,
    NoRouteFound,
    OnwardJourneysError,
    ProviderUnavailable,
    StationListUnavailable,
    ValidationError,
)
from onward_journeys.domain.models import (
    Board,
    Crs,
    IdentifyTrainRequest,
    Journey,
    Leg,
    PlanRequest,
    PlanResult,
    Station,
    TrainMatch,
    Walk,
)
from onward_journeys.application.station_names import DEFAULT_SEARCH_LIMIT
from onward_journeys.main import configure_logging, planning_service, station_names

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NO_ROUTE = 2


def _str_or_none(value: Any) -> str | None:
    return None if value is None else str(value)


def board_to_dict(board: Board) -> dict[str, Any]:
    return {
        "station": str(board.station),
        "station_name": board.station_name,
        "generated_at": board.generated_at.isoformat(),
        "services": [
            {
                "service_id": service.service_id,
                "headcode": _str_or_none(service.headcode),
                "operator": service.operator,
                "destination": service.destination_name,
                "position": service.board_station_index,
                "platform": service.board_call.platform,
                "scheduled": _str_or_none(service.board_call.booked_departure),
                "expected": _str_or_none(service.board_call.expected_departure),
                "cancelled": service.board_call.is_cancelled,
            }
            for service in board.services
        ],
    }


def station_to_dict(station: Station) -> dict[str, Any]:
    return {"crs": str(station.crs), "name": station.name}


def match_to_dict(match: TrainMatch) -> dict[str, Any]:
    candidate = match.candidate
    return {
        "service_id": candidate.service.service_id,
        "board_station": str(candidate.service.service_ref.board_station),
        "position": candidate.board_index,
        "headcode": _str_or_none(candidate.service.headcode),
        "destination": candidate.destination,
        "scheduled": _str_or_none(candidate.scheduled_departure),
        "departure": _str_or_none(candidate.departure_time),
        "confidence": match.confidence.name.lower(),
    }


def journey_to_dict(journey: Journey) -> dict[str, Any]:
    segments: list[dict[str, Any]] = []
    for segment in journey.segments:
        if isinstance(segment, Leg):
            segments.append(
                {
                    "type": "train",
                    "from": str(segment.origin),
                    "to": str(segment.destination),
                    "departure": str(segment.departure_time),
                    "arrival": str(segment.arrival_time),
                    "train": segment.identity,
                    "intermediate_stops": segment.intermediate_stop_count,
                    "operator": segment.service.operator,
                    "service_id": segment.service.service_id,
                }
            )
        else:
            segments.append(
                {
                    "type": "walk",
                    "from": str(segment.origin),
                    "to": str(segment.destination),
                    "minutes": int(segment.duration.total_seconds() // 60),
                }
            )
    margin = journey.min_interchange_margin
    return {
        "departure": str(journey.departure_time),
        "arrival": str(journey.arrival_time),
        "changes": journey.change_count,
        "duration_minutes": int(journey.total_duration.total_seconds() // 60),
        "min_interchange_minutes": None if margin is None else int(margin.total_seconds() // 60),
        "segments": segments,
    }


def plan_result_to_dict(result: PlanResult) -> dict[str, Any]:
    return {
        "journeys": [journey_to_dict(journey) for journey in result.journeys],
        "partial": result.is_partial,
        "coverage_notes": [
            {
                "reason": note.reason.value,
                "station": None if note.station is None else str(note.station),
                "detail": note.detail,
            }
            for note in result.coverage_notes
        ],
        "states_expanded": result.states_expanded,
        "boards_requested": result.boards_requested,
    }


def format_journey(journey: Journey) -> str:
    lines = [
        f"{journey.departure_time} -> {journey.arrival_time} "
        f"({journey.change_count} change{'s' if journey.change_count != 1 else ''})"
    ]
    for segment in journey.segments:
        if isinstance(segment, Walk):
            minutes = int(segment.duration.total_seconds() // 60)
            lines.append(f"    walk {segment.origin} -> {segment.destination} ({minutes} min)")
        else:
            lines.append(
                f"    {segment.departure_time} {segment.origin} -> "
                f"{segment.arrival_time} {segment.destination}  "
                f"{segment.identity} {segment.service.operator}".rstrip()
            )
    return "\n".join(lines)


def _print_board(board: Board) -> None:
    print(f"\n{board.station_name} ({board.station}) at {board.generated_at:%H:%M}")
    print("=" * 70)
    if not board.services:
        print("  No departures.")
    for service in board.services:
        call = service.board_call
        expected = call.expected_departure
        status = "Cancelled" if call.is_cancelled else (f"exp {expected}" if expected else "")
        print(
            f"  {_str_or_none(call.booked_departure) or '--:--'}  {service.destination_name:<30} "
            f"plat {call.platform or '-':<3} {status}"
        )
        print(f"      id {service.service_id} position {service.board_station_index}")


def _print_matches(matches: list[TrainMatch]) -> None:
    if not matches:
        print("No matching trains.")
        return
    for match in matches:
        candidate = match.candidate
        print(
            f"  {_str_or_none(candidate.departure_time) or '--:--'}  {candidate.destination:<30} "
            f"{match.confidence.description}"
        )
        print(
            f"      id {candidate.service.service_id} "
            f"board {candidate.service.service_ref.board_station} position {candidate.board_index}"
        )


def _print_plan(result: PlanResult) -> None:
    if result.is_partial:
        print("Partial result:")
        for note in result.coverage_notes:
            where = f" at {note.station}" if note.station else ""
            print(f"  - {note.reason.value}{where}: {note.detail}")
    if not result.journeys:
        print("No journeys found.")
    for position, journey in enumerate(result.journeys, start=1):
        print(f"\n[{position}] {format_journey(journey)}")


def _print_stations(stations: list[Station]) -> None:
    if not stations:
        print("No matching stations.")
    for station in stations:
        print(f"  {station.crs}  {station.name}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="onward-journeys",
        description="Onward journeys for passengers already on a train",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show the departure board at Reading
  onward-journeys board RDG

  # Which train am I on? Next stop Reading, terminating at Oxford
  onward-journeys identify RDG --terminus OXF

  # Plan from a service seen on the Paddington board, boarded at call 0
  onward-journeys plan pad_service_2 --board-station PAD --position 0 --destination BTN

  # Find the code of a station by name
  onward-journeys stations "milton keynes"
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    board_parser = subparsers.add_parser("board", help="Show a station's departure board")
    board_parser.add_argument("station", help="Station CRS code (e.g. PAD)")
    board_parser.add_argument("--json", action="store_true", help="Output as JSON")

    identify_parser = subparsers.add_parser("identify", help="Identify the train you are on")
    identify_parser.add_argument("next_station", help="CRS code of the next stop")
    identify_parser.add_argument("--terminus", help="CRS code of the train's final stop")
    identify_parser.add_argument("--json", action="store_true", help="Output as JSON")

    plan_parser = subparsers.add_parser("plan", help="Plan onward journeys")
    plan_parser.add_argument("service_id", help="Service id from a departure board")
    plan_parser.add_argument(
        "--board-station", required=True, help="CRS code of the board the id came from"
    )
    plan_parser.add_argument(
        "--position", type=int, required=True, help="Call index you boarded at"
    )
    plan_parser.add_argument("--destination", required=True, help="Destination CRS code")
    plan_parser.add_argument("--json", action="store_true", help="Output as JSON")

    stations_parser = subparsers.add_parser("stations", help="Look up station codes by name")
    stations_parser.add_argument("query", help="Station code or part of its name")
    stations_parser.add_argument(
        "--limit", type=int, default=DEFAULT_SEARCH_LIMIT, help="Maximum number of results"
    )
    stations_parser.add_argument(
        "--refresh", action="store_true", help="Fetch the station list even if one is cached"
    )
    stations_parser.add_argument("--json", action="store_true", help="Output as JSON")

    return parser


async def run_stations(args: argparse.Namespace, config: AppConfig) -> int:
    async with station_names(config) as names:
        if args.refresh:
            await names.refresh()
        else:
            await names.load()
        matches = names.search(args.query, args.limit)
    if args.json:
        print(json.dumps([station_to_dict(station) for station in matches], indent=2))
    else:
        _print_stations(matches)
    return EXIT_OK


async def run_command(args: argparse.Namespace, config: AppConfig) -> int:
    if args.command == "stations":
        return await run_stations(args, config)

    async with planning_service(config) as service:
        if args.command == "board":
            board = await service.get_board(Crs.parse(args.station))
            if args.json:
                print(json.dumps(board_to_dict(board), indent=2))
            else:
                _print_board(board)

        elif args.command == "identify":
            request = IdentifyTrainRequest(
                next_station=Crs.parse(args.next_station),
                terminus=Crs.parse(args.terminus) if args.terminus else None,
            )
            matches = await service.identify(request)
            if args.json:
                print(json.dumps([match_to_dict(match) for match in matches], indent=2))
            else:
                _print_matches(matches)

        elif args.command == "plan":
            request = PlanRequest(
                service_id=args.service_id,
                board_station=Crs.parse(args.board_station),
                position=args.position,
                destination=Crs.parse(args.destination),
            )
            result = await service.plan(request)
            if args.json:
                print(json.dumps(plan_result_to_dict(result), indent=2))
            else:
                _print_plan(result)

    return EXIT_OK


async def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_ERROR

    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        return await run_command(args, AppConfig())
    except NoRouteFound as e:
        print(f"No route: {e}", file=sys.stderr)
        return EXIT_NO_ROUTE
    except (ValidationError, InvalidAnchor) as e:
        print(f"Invalid request: {e}", file=sys.stderr)
        return EXIT_ERROR
    except ProviderUnavailable as e:
        print(f"Board data unavailable: {e}", file=sys.stderr)
        return EXIT_ERROR
    except StationListUnavailable as e:
        print(f"Station list unavailable: {e}", file=sys.stderr)
        return EXIT_ERROR
    except (OnwardJourneysError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def cli_main() -> None:
    """Synchronous entry point for the onward-journeys command."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(EXIT_ERROR)


if __name__ == "__main__":
    cli_main()
