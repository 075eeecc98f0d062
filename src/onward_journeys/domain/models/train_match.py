"""Train identification domain models."""

from dataclasses import dataclass
from enum import IntEnum

from onward_journeys.domain.models.crs import Crs
from onward_journeys.domain.models.service import ServiceCandidate


class MatchConfidence(IntEnum):
    """How well a board service matches what the passenger observed (lower is better)."""

    EXACT = 0  # Next station and terminus both match
    NEXT_STATION_ONLY = 1

    @property
    def description(self) -> str:
        if self is MatchConfidence.EXACT:
            return "Matches next stop and terminus"
        return "Matches next stop only"


@dataclass(frozen=True)
class IdentifyTrainRequest:
    """What a passenger can see from their seat: the next stop and maybe the terminus."""

    next_station: Crs
    terminus: Crs | None = None


@dataclass(frozen=True)
class TrainMatch:
    """A board service that could be the passenger's train."""

    candidate: ServiceCandidate
    confidence: MatchConfidence
