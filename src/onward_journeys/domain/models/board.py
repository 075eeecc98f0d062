"""Departure board domain models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from onward_journeys.domain.models.crs import Crs
from onward_journeys.domain.models.rail_time import RailTime
from onward_journeys.domain.models.service import Service

MIN_TIME_OFFSET = -120
MAX_TIME_OFFSET = 119
MAX_TIME_WINDOW = 120


class BoardKind(Enum):
    """Which of a station's two boards: trains leaving, or trains arriving."""

    DEPARTURES = "departures"
    ARRIVALS = "arrivals"


@dataclass(frozen=True)
class BoardQuery:
    """Board request parameters, passed through to the provider untouched.

    time_offset and time_window are minutes relative to the provider's "now".
    """

    time_offset: int = 0
    time_window: int = MAX_TIME_WINDOW

    def normalized(self) -> "BoardQuery":
        """Clamp into the ranges the provider accepts so equivalent queries compare equal."""
        return BoardQuery(
            time_offset=max(MIN_TIME_OFFSET, min(MAX_TIME_OFFSET, self.time_offset)),
            time_window=max(0, min(MAX_TIME_WINDOW, self.time_window)),
        )


@dataclass(frozen=True)
class Board:
    """Snapshot of the services at one station at fetch time.

    On an arrivals board each service's board call is its arrival at the station.
    """

    station: Crs
    station_name: str
    generated_at: datetime
    services: tuple[Service, ...] = ()

    def find_service(self, service_id: str) -> Service | None:
        for service in self.services:
            if service.service_id == service_id:
                return service
        return None

    def departures_between(self, start: RailTime, end: RailTime) -> list[Service]:
        """Services whose expected departure from this station lies in [start, end]."""
        departing = []
        for service in self.services:
            departure = service.board_call.expected_departure
            if departure is not None and start <= departure <= end:
                departing.append(service)
        return departing
