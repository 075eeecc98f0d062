"""Calling point domain model."""

from dataclasses import dataclass
from datetime import timedelta

from onward_journeys.domain.models.crs import Crs
from onward_journeys.domain.models.rail_time import RailTime

# Position of a call within its service. Unambiguous even when a service calls at the
# same station twice (loops, reversals).
CallIndex = int


@dataclass(frozen=True)
class Call:
    """One station stop on a service.

    Booked times come from the timetable; realtime times are estimates or actuals and
    take precedence when present. A true origin has no arrival and a terminus has no
    departure.
    """

    index: CallIndex
    station: Crs
    station_name: str
    platform: str | None = None
    booked_arrival: RailTime | None = None
    booked_departure: RailTime | None = None
    realtime_arrival: RailTime | None = None
    realtime_departure: RailTime | None = None
    is_cancelled: bool = False

    @property
    def expected_arrival(self) -> RailTime | None:
        return self.realtime_arrival or self.booked_arrival

    @property
    def expected_departure(self) -> RailTime | None:
        return self.realtime_departure or self.booked_departure

    @property
    def arrival_or_departure(self) -> RailTime | None:
        """Best time a passenger is at this call when alighting."""
        return self.expected_arrival or self.expected_departure

    @property
    def departure_or_arrival(self) -> RailTime | None:
        return self.expected_departure or self.expected_arrival

    @property
    def arrival_delay(self) -> timedelta | None:
        return _delay(self.booked_arrival, self.realtime_arrival)

    @property
    def departure_delay(self) -> timedelta | None:
        return _delay(self.booked_departure, self.realtime_departure)


def _delay(booked: RailTime | None, realtime: RailTime | None) -> timedelta | None:
    if booked is None or realtime is None or realtime <= booked:
        return None
    return realtime - booked
