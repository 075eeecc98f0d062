"""Parser for Darwin GetDepBoardWithDetails and GetArrBoardWithDetails responses."""

import logging
import re
from datetime import datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from onward_journeys.adapters.darwin_api.constants import NO_ESTIMATE, ON_TIME
from onward_journeys.domain.errors import OnwardJourneysError, ValidationError
from onward_journeys.domain.models.atoc_code import AtocCode
from onward_journeys.domain.models.board import Board
from onward_journeys.domain.models.call import Call
from onward_journeys.domain.models.crs import Crs
from onward_journeys.domain.models.headcode import Headcode
from onward_journeys.domain.models.rail_time import (
    RailTime,
    parse_time_sequence,
    parse_time_sequence_reverse,
)
from onward_journeys.domain.models.service import Service, ServiceRef

logger = logging.getLogger(__name__)

# Darwin sends up to seven fractional digits; fromisoformat wants at most six
_FRACTION_PATTERN = re.compile(r"(\.\d{6})\d+")

# An "HH:MM" further than this from its reference belongs to the neighbouring day
_HALF_DAY = timedelta(hours=12)


class BoardParseError(OnwardJourneysError):
    """The board payload as a whole could not be understood."""


class DarwinBoardParser:
    """Converts Darwin departure or arrivals board JSON into a Board.

    Services that cannot be converted are logged and skipped; only a payload with no
    usable station code fails the whole board.
    """

    def __init__(self, timezone: str = "Europe/London") -> None:
        self._timezone = ZoneInfo(timezone)

    def parse_board(self, data: dict[str, Any], now: datetime | None = None) -> Board:
        """Parse a board payload.

        Args:
            data: Decoded JSON object of the board response.
            now: Fallback generation time when the payload has no usable generatedAt.

        Raises:
            BoardParseError: If the payload is not an object or has no valid crs.
        """
        if not isinstance(data, dict):
            raise BoardParseError(f"expected a JSON object, got {type(data).__name__}")

        try:
            station = Crs.parse(str(data.get("crs", "")))
        except ValidationError as e:
            raise BoardParseError(f"board has no valid station code: {e}") from e

        station_name = data.get("locationName") or str(station)
        generated_at = self._parse_generated_at(data.get("generatedAt"), now)
        reference = RailTime.from_datetime(generated_at)

        services = []
        for item in data.get("trainServices") or []:
            service = self._parse_service(item, station, station_name, reference)
            if service is not None:
                services.append(service)

        return Board(
            station=station,
            station_name=station_name,
            generated_at=generated_at,
            services=tuple(services),
        )

    def _parse_generated_at(self, raw: Any, now: datetime | None) -> datetime:
        if isinstance(raw, str) and raw:
            try:
                parsed = datetime.fromisoformat(_FRACTION_PATTERN.sub(r"\1", raw))
            except ValueError:
                logger.warning(f"Unparseable generatedAt {raw!r}, using current time")
            else:
                if parsed.tzinfo is None:
                    return parsed.replace(tzinfo=self._timezone)
                return parsed.astimezone(self._timezone)
        return now if now is not None else datetime.now(self._timezone)

    def _parse_service(
        self, item: Any, station: Crs, station_name: str, reference: RailTime
    ) -> Service | None:
        service_id = item.get("serviceID", "?") if isinstance(item, dict) else "?"
        try:
            return self._build_service(item, station, station_name, reference)
        except (OnwardJourneysError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping service {service_id} on {station} board: {e}")
            return None

    def _build_service(
        self, item: dict[str, Any], station: Crs, station_name: str, reference: RailTime
    ) -> Service:
        service_id = item["serviceID"]
        if not service_id:
            raise BoardParseError("service has an empty serviceID")

        std, sta = item.get("std"), item.get("sta")
        if not std and not sta:
            raise BoardParseError("service has neither a scheduled departure nor arrival")

        # The board spans at most a couple of hours either side of generatedAt. Services
        # terminating here only appear on arrivals boards and have no std.
        booked_departure = _nearest(std, reference) if std else None
        booked_arrival = None
        if sta:
            booked_arrival = (
                RailTime.resolve_backwards(sta, booked_departure)
                if booked_departure is not None
                else _nearest(sta, reference)
            )

        first_board_time = booked_arrival or booked_departure
        last_board_time = booked_departure or booked_arrival
        assert first_board_time is not None and last_board_time is not None  # std or sta
        previous = self._previous_calls(item, first_board_time)
        board_call = Call(
            index=len(previous),
            station=station,
            station_name=station_name,
            platform=item.get("platform"),
            booked_arrival=booked_arrival,
            booked_departure=booked_departure,
            realtime_arrival=_expected_time(item.get("eta"), booked_arrival),
            realtime_departure=_expected_time(item.get("etd"), booked_departure),
            is_cancelled=bool(item.get("isCancelled", False)),
        )
        subsequent = self._subsequent_calls(item, last_board_time, len(previous) + 1)

        return Service(
            service_ref=ServiceRef(service_id, station),
            calls=(*previous, board_call, *subsequent),
            board_station_index=len(previous),
            headcode=Headcode.from_rsid(item.get("rsid")),
            operator=item.get("operator") or "",
            operator_code=_parse_operator_code(item.get("operatorCode")),
            destination_name=_destination_name(item.get("destination")),
        )

    def _previous_calls(self, item: dict[str, Any], board_time: RailTime) -> list[Call]:
        points = _calling_points(item.get("previousCallingPoints"))
        if not points:
            return []

        # Resolved latest-first, chained from the board call, so a service that started
        # before midnight gets its early calls on the previous day
        latest_first = parse_time_sequence_reverse(
            [str(board_time), *(point.get("st") for point in reversed(points))],
            board_time.date,
        )[1:]
        times = list(reversed(latest_first))
        return [
            _calling_point_to_call(point, booked, index=position, is_terminus=False)
            for position, (point, booked) in enumerate(zip(points, times, strict=True))
        ]

    def _subsequent_calls(
        self, item: dict[str, Any], board_departure: RailTime, first_index: int
    ) -> list[Call]:
        points = _calling_points(item.get("subsequentCallingPoints"))
        if not points:
            return []

        times = parse_time_sequence(
            [str(board_departure), *(point.get("st") for point in points)], board_departure.date
        )[1:]
        last = len(points) - 1
        return [
            _calling_point_to_call(
                point, booked, index=first_index + position, is_terminus=position == last
            )
            for position, (point, booked) in enumerate(zip(points, times, strict=True))
        ]


def _calling_points(arrays: Any) -> list[dict[str, Any]]:
    if not arrays:
        return []
    points = arrays[0].get("callingPoint") or []
    return [point for point in points if isinstance(point, dict)]


def _calling_point_to_call(
    point: dict[str, Any], booked: RailTime | None, index: int, is_terminus: bool
) -> Call:
    station = Crs.parse(str(point.get("crs", "")))
    realtime = _expected_time(point.get("at") or point.get("et"), booked)

    # st is the arrival at the terminus and the departure everywhere else
    if is_terminus:
        return Call(
            index=index,
            station=station,
            station_name=point.get("locationName") or str(station),
            booked_arrival=booked,
            realtime_arrival=realtime,
            is_cancelled=bool(point.get("isCancelled", False)),
        )
    return Call(
        index=index,
        station=station,
        station_name=point.get("locationName") or str(station),
        booked_departure=booked,
        realtime_departure=realtime,
        is_cancelled=bool(point.get("isCancelled", False)),
    )


def _expected_time(raw: str | None, booked: RailTime | None) -> RailTime | None:
    """Interpret an estimate field: "On time", a status string, or an "HH:MM" time."""
    if booked is None or raw is None or raw in NO_ESTIMATE:
        return None
    if raw == ON_TIME:
        return booked
    try:
        return _nearest(raw, booked)
    except ValidationError:
        return None


def _nearest(raw: str, reference: RailTime) -> RailTime:
    """Resolve "HH:MM" onto whichever day puts it nearest the reference."""
    candidate = RailTime.parse_hhmm(raw, reference.date)
    offset = candidate - reference
    if offset > _HALF_DAY:
        return RailTime(candidate.date - timedelta(days=1), candidate.time)
    if offset < -_HALF_DAY:
        return RailTime(candidate.date + timedelta(days=1), candidate.time)
    return candidate


def _parse_operator_code(raw: str | None) -> AtocCode | None:
    if not raw:
        return None
    try:
        return AtocCode.parse(raw)
    except ValidationError:
        return None


def _destination_name(destinations: Any) -> str:
    if not destinations:
        return "Unknown"
    # Split services list several destinations
    return " & ".join(d.get("locationName", "") for d in destinations if isinstance(d, dict))
