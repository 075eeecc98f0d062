"""Planning request and result domain models."""

from dataclasses import dataclass, field
from enum import Enum

from onward_journeys.domain.models.call import CallIndex
from onward_journeys.domain.models.crs import Crs
from onward_journeys.domain.models.journey import Journey
from onward_journeys.domain.models.search_config import SearchConfig


class CoverageReason(Enum):
    """Why a search did not cover everything it could have."""

    PROVIDER_UNAVAILABLE = "provider_unavailable"
    DEADLINE_EXPIRED = "deadline_expired"
    STATE_BUDGET_EXHAUSTED = "state_budget_exhausted"


@dataclass(frozen=True)
class CoverageNote:
    """One gap in search coverage, optionally tied to a station."""

    reason: CoverageReason
    detail: str
    station: Crs | None = None


@dataclass(frozen=True)
class PlanRequest:
    """Where the passenger is and where they want to go."""

    service_id: str
    board_station: Crs
    position: CallIndex
    destination: Crs
    search_config: SearchConfig | None = None


@dataclass(frozen=True)
class PlanResult:
    """Ranked journeys plus how complete the search that found them was."""

    journeys: tuple[Journey, ...]
    coverage_notes: tuple[CoverageNote, ...] = ()
    states_expanded: int = 0
    boards_requested: int = 0
    is_partial: bool = field(default=False)

    @property
    def unavailable_stations(self) -> list[Crs]:
        return [
            note.station
            for note in self.coverage_notes
            if note.reason is CoverageReason.PROVIDER_UNAVAILABLE and note.station is not None
        ]
