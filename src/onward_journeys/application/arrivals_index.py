"""Index of the trains arriving at a destination, keyed by the stations they call at first.

Built from the destination's arrivals board, it answers "which trains from here reach the
destination" without fetching the departure board of every change station.
"""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from onward_journeys.domain.models.board import Board
from onward_journeys.domain.models.call import CallIndex
from onward_journeys.domain.models.crs import Crs
from onward_journeys.domain.models.journey import Leg
from onward_journeys.domain.models.rail_time import RailTime
from onward_journeys.domain.models.service import Service


@dataclass(frozen=True)
class Feeder:
    """A train that can be boarded at one station and ridden to the destination."""

    service: Service
    board_index: CallIndex
    destination_index: CallIndex
    departure: RailTime  # Expected departure from the boarding station
    arrival: RailTime  # Expected arrival at the destination

    @property
    def leg(self) -> Leg:
        return Leg(self.service, self.board_index, self.destination_index)


class ArrivalsIndex:
    """Feeders of one destination grouped by boarding station, earliest departure first."""

    def __init__(self, destination: Crs, feeders: Iterable[Feeder] = ()) -> None:
        self._destination = destination
        by_station: dict[Crs, list[Feeder]] = defaultdict(list)
        for feeder in feeders:
            by_station[feeder.service.calls[feeder.board_index].station].append(feeder)
        self._feeders = {
            station: sorted(found, key=lambda feeder: feeder.departure)
            for station, found in by_station.items()
        }

    @classmethod
    def from_board(cls, destination: Crs, board: Board) -> "ArrivalsIndex":
        """Index every service on an arrivals board.

        A service counts from its first call at the destination. It is left out when that
        call is cancelled or has no expected arrival; earlier calls are left out when
        cancelled or without an expected departure.
        """
        feeders = []
        for service in board.services:
            arrival_call = service.find_call(destination)
            if arrival_call is None or arrival_call.is_cancelled:
                continue
            arrival = arrival_call.expected_arrival
            if arrival is None:
                continue
            for call in service.calls[: arrival_call.index]:
                departure = call.expected_departure
                if call.is_cancelled or departure is None:
                    continue
                feeders.append(
                    Feeder(
                        service=service,
                        board_index=call.index,
                        destination_index=arrival_call.index,
                        departure=departure,
                        arrival=arrival,
                    )
                )
        return cls(destination, feeders)

    @property
    def destination(self) -> Crs:
        return self._destination

    @property
    def feeder_station_count(self) -> int:
        return len(self._feeders)

    @property
    def feeder_count(self) -> int:
        return sum(len(found) for found in self._feeders.values())

    def is_feeder(self, station: Crs) -> bool:
        return station in self._feeders

    def feeders_at(self, station: Crs) -> list[Feeder]:
        return list(self._feeders.get(station, ()))
