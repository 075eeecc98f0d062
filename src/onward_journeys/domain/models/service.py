"""Train service domain models.

Service identifiers handed out by departure boards are ephemeral: they are only valid
while the service is still on the board they were read from. A ServiceRef therefore
always carries the board station it came from, and nothing is ever cached by service id.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import timedelta

from onward_journeys.domain.errors import DomainError
from onward_journeys.domain.models.atoc_code import AtocCode
from onward_journeys.domain.models.call import Call, CallIndex
from onward_journeys.domain.models.crs import Crs
from onward_journeys.domain.models.headcode import Headcode
from onward_journeys.domain.models.rail_time import RailTime


@dataclass(frozen=True)
class ServiceRef:
    """Pointer to a service on a specific board snapshot."""

    service_id: str
    board_station: Crs


@dataclass(frozen=True)
class Service:
    """A train service with its full, chronologically ordered calling pattern."""

    service_ref: ServiceRef
    calls: tuple[Call, ...]
    board_station_index: CallIndex = 0
    headcode: Headcode | None = None
    operator: str = ""
    operator_code: AtocCode | None = None
    destination_name: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        for position, call in enumerate(self.calls):
            if call.index != position:
                raise DomainError(
                    f"service {self.service_ref.service_id}: call {call.station} has index "
                    f"{call.index}, expected {position}"
                )
        if self.calls and not 0 <= self.board_station_index < len(self.calls):
            raise DomainError(
                f"service {self.service_ref.service_id}: board station index "
                f"{self.board_station_index} out of range"
            )
        self._check_times_non_decreasing()

    def _check_times_non_decreasing(self) -> None:
        """Booked times must never go backwards along the calling pattern.

        Estimates and actuals are exempt: Darwin revises them per call, and a late actual
        at one stop followed by a stale estimate at the next is ordinary board data.
        """
        latest: RailTime | None = None
        for call in self.calls:
            for booked in (call.booked_arrival, call.booked_departure):
                if booked is None:
                    continue
                if latest is not None and booked < latest:
                    raise DomainError(
                        f"service {self.service_ref.service_id}: time {booked!r} at "
                        f"{call.station} goes backwards from {latest!r}"
                    )
                latest = booked

    @property
    def service_id(self) -> str:
        return self.service_ref.service_id

    @property
    def train_identity(self) -> str:
        """Stable-for-the-day identity: the headcode, or the board id when none is known."""
        if self.headcode is not None:
            return str(self.headcode)
        return f"service:{self.service_ref.service_id}"

    @property
    def board_call(self) -> Call:
        return self.calls[self.board_station_index]

    @property
    def destination_call(self) -> Call | None:
        return self.calls[-1] if self.calls else None

    @property
    def is_cancelled(self) -> bool:
        return bool(self.calls) and all(call.is_cancelled for call in self.calls)

    def has_call(self, index: CallIndex) -> bool:
        return 0 <= index < len(self.calls)

    def calls_from(self, index: CallIndex) -> tuple[Call, ...]:
        """Calls at or after the given index (empty if out of range)."""
        if index < 0:
            return ()
        return self.calls[index:]

    def calls_after(self, index: CallIndex) -> Iterator[Call]:
        return iter(self.calls[index + 1 :])

    def find_call(self, station: Crs, after: CallIndex = 0) -> Call | None:
        """First call at a station at or after the given index."""
        for call in self.calls_from(after):
            if call.station == station:
                return call
        return None


@dataclass(frozen=True)
class ServiceCandidate:
    """A service together with the call a passenger boards (or is aboard) at."""

    service: Service
    board_index: CallIndex

    @property
    def board_call(self) -> Call:
        return self.service.calls[self.board_index]

    @property
    def is_valid(self) -> bool:
        return self.service.has_call(self.board_index)

    @property
    def scheduled_departure(self) -> RailTime | None:
        return self.board_call.booked_departure

    @property
    def departure_time(self) -> RailTime | None:
        """Expected departure from the boarding call, falling back to its arrival."""
        return self.board_call.departure_or_arrival

    @property
    def delay(self) -> timedelta | None:
        return self.board_call.departure_delay

    @property
    def destination(self) -> str:
        if self.service.destination_name:
            return self.service.destination_name
        last = self.service.destination_call
        return last.station_name if last is not None else "Unknown"

    @classmethod
    def at_board_station(cls, service: Service) -> "ServiceCandidate":
        return cls(service, service.board_station_index)
