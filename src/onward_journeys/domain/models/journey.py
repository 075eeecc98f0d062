"""Journey domain models.

A Journey is an ordered sequence of Segments (train Legs and Walks) from the passenger's
current train to the destination.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import timedelta

from onward_journeys.domain.errors import DomainError
from onward_journeys.domain.models.call import Call, CallIndex
from onward_journeys.domain.models.crs import Crs
from onward_journeys.domain.models.rail_time import RailTime
from onward_journeys.domain.models.service import Service

WALK_IDENTITY = "walk"


@dataclass(frozen=True)
class Leg:
    """A ride on one service from a boarding call to a later alighting call."""

    service: Service
    board_index: CallIndex
    alight_index: CallIndex

    def __post_init__(self) -> None:
        if self.alight_index <= self.board_index:
            raise DomainError("alight index must be after board index")
        service = self.service
        if not (service.has_call(self.board_index) and service.has_call(self.alight_index)):
            raise DomainError(
                f"call index out of range for service {self.service.service_id} "
                f"({self.board_index}->{self.alight_index})"
            )
        if self.board_call.departure_or_arrival is None:
            raise DomainError(f"no departure time at {self.board_call.station}")
        if self.alight_call.arrival_or_departure is None:
            raise DomainError(f"no arrival time at {self.alight_call.station}")

    @property
    def board_call(self) -> Call:
        return self.service.calls[self.board_index]

    @property
    def alight_call(self) -> Call:
        return self.service.calls[self.alight_index]

    @property
    def origin(self) -> Crs:
        return self.board_call.station

    @property
    def destination(self) -> Crs:
        return self.alight_call.station

    @property
    def departure_time(self) -> RailTime:
        departure = self.board_call.departure_or_arrival
        assert departure is not None  # checked in __post_init__
        return departure

    @property
    def arrival_time(self) -> RailTime:
        arrival = self.alight_call.arrival_or_departure
        assert arrival is not None  # checked in __post_init__
        return arrival

    @property
    def duration(self) -> timedelta:
        return self.arrival_time - self.departure_time

    @property
    def identity(self) -> str:
        return self.service.train_identity

    @property
    def calls(self) -> tuple[Call, ...]:
        return self.service.calls[self.board_index : self.alight_index + 1]

    @property
    def intermediate_stop_count(self) -> int:
        return self.alight_index - self.board_index - 1

    @property
    def is_cancelled(self) -> bool:
        return self.board_call.is_cancelled or self.alight_call.is_cancelled

    def continues_as(self, service: Service, board_index: CallIndex | None = None) -> bool:
        """Whether boarding the service at a call (its board call by default) means staying on.

        Headcodes repeat across operators and across the day, so a match also needs the
        same operator and a boarding call at this leg's alighting station sharing a booked
        time with it. Calling points and board entries book a stop by arrival or by
        departure depending on the feed, so either time counts.
        """
        if service.service_id == self.service.service_id:
            return True
        if self.service.headcode is None or service.headcode != self.service.headcode:
            return False
        if service.operator_code != self.service.operator_code:
            return False
        board_call = service.board_call if board_index is None else service.calls[board_index]
        alight_call = self.alight_call
        if board_call.station != alight_call.station:
            return False
        alight_times = {alight_call.booked_arrival, alight_call.booked_departure} - {None}
        board_times = {board_call.booked_arrival, board_call.booked_departure} - {None}
        return bool(alight_times & board_times)


@dataclass(frozen=True)
class Walk:
    """A walk along one directed walkable edge, starting at a known time."""

    origin: Crs
    destination: Crs
    duration: timedelta
    departure_time: RailTime

    def __post_init__(self) -> None:
        if self.duration < timedelta(0):
            raise DomainError("walk duration must not be negative")

    @property
    def arrival_time(self) -> RailTime:
        return self.departure_time + self.duration

    @property
    def identity(self) -> str:
        return WALK_IDENTITY


Segment = Leg | Walk


@dataclass(frozen=True)
class Journey:
    """A complete trip from the passenger's current train to the destination."""

    segments: tuple[Segment, ...]

    def __post_init__(self) -> None:
        if not self.segments:
            raise DomainError("journey must have at least one segment")
        if not isinstance(self.segments[0], Leg):
            raise DomainError("journey must start with a train leg")
        for previous, following in zip(self.segments, self.segments[1:]):
            if previous.destination != following.origin:
                raise DomainError(
                    f"segments not contiguous: {previous.destination} -> {following.origin}"
                )
            if following.departure_time < previous.arrival_time:
                raise DomainError(
                    f"segment from {following.origin} departs at {following.departure_time} "
                    f"before arrival at {previous.arrival_time}"
                )

    @classmethod
    def build(
        cls, segments: "list[Segment] | tuple[Segment, ...]", min_connection_margin: timedelta
    ) -> "Journey":
        """Build a journey, also enforcing the minimum margin between two trains.

        The margin applies only where one leg is directly followed by a leg on a different
        train, and a walk is itself the transfer time.

        Raises:
            DomainError: If the segments do not form a valid journey.
        """
        journey = cls(tuple(segments))
        for previous, following in zip(journey.segments, journey.segments[1:]):
            if (
                isinstance(previous, Leg)
                and isinstance(following, Leg)
                and not previous.continues_as(following.service, following.board_index)
                and following.departure_time - previous.arrival_time < min_connection_margin
            ):
                raise DomainError(
                    f"connection at {following.origin} is shorter than {min_connection_margin}"
                )
        return journey

    @property
    def legs(self) -> list[Leg]:
        return [segment for segment in self.segments if isinstance(segment, Leg)]

    @property
    def walks(self) -> list[Walk]:
        return [segment for segment in self.segments if isinstance(segment, Walk)]

    @property
    def origin(self) -> Crs:
        return self.segments[0].origin

    @property
    def destination(self) -> Crs:
        return self.segments[-1].destination

    @property
    def departure_time(self) -> RailTime:
        return self.segments[0].departure_time

    @property
    def arrival_time(self) -> RailTime:
        return self.segments[-1].arrival_time

    @property
    def total_duration(self) -> timedelta:
        return self.arrival_time - self.departure_time

    @property
    def total_walk_duration(self) -> timedelta:
        return sum((walk.duration for walk in self.walks), timedelta(0))

    @property
    def leg_count(self) -> int:
        return len(self.legs)

    @property
    def change_count(self) -> int:
        return max(0, self.leg_count - 1)

    @property
    def is_direct(self) -> bool:
        return self.leg_count == 1

    @property
    def min_interchange_margin(self) -> timedelta | None:
        """Smallest slack between arriving at a change and the next train leaving.

        Walks between the two trains count as transfer time, not slack. None when the
        journey has no change.
        """
        margins = list(self._interchange_margins())
        return min(margins) if margins else None

    def _interchange_margins(self) -> Iterator[timedelta]:
        ready_at: RailTime | None = None
        for segment in self.segments:
            if isinstance(segment, Walk):
                if ready_at is not None:
                    ready_at = segment.arrival_time
                continue
            if ready_at is not None:
                yield segment.departure_time - ready_at
            ready_at = segment.arrival_time

    @property
    def visited_stations(self) -> frozenset[Crs]:
        """Stations where a segment starts or ends."""
        stations = {self.origin}
        stations.update(segment.destination for segment in self.segments)
        return frozenset(stations)

    @property
    def signature(self) -> tuple[tuple[Crs, Crs, str], ...]:
        """Route shape used to spot duplicates: stations and train identities only."""
        return tuple(
            (segment.origin, segment.destination, segment.identity) for segment in self.segments
        )
