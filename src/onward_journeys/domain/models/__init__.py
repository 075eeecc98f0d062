"""Domain models for onward journey planning."""

from onward_journeys.domain.models.atoc_code import AtocCode
from onward_journeys.domain.models.board import Board, BoardKind, BoardQuery
from onward_journeys.domain.models.call import Call, CallIndex
from onward_journeys.domain.models.crs import Crs
from onward_journeys.domain.models.headcode import Headcode
from onward_journeys.domain.models.journey import Journey, Leg, Segment, Walk
from onward_journeys.domain.models.plan_result import (
    CoverageNote,
    CoverageReason,
    PlanRequest,
    PlanResult,
)
from onward_journeys.domain.models.rail_time import (
    RailTime,
    parse_time_sequence,
    parse_time_sequence_reverse,
)
from onward_journeys.domain.models.search_config import SearchConfig
from onward_journeys.domain.models.service import Service, ServiceCandidate, ServiceRef
from onward_journeys.domain.models.station import Station
from onward_journeys.domain.models.train_match import (
    IdentifyTrainRequest,
    MatchConfidence,
    TrainMatch,
)
from onward_journeys.domain.models.walkable_graph import WalkableGraph, WalkableGraphBuilder

__all__ = [
    "AtocCode",
    "Board",
    "BoardKind",
    "BoardQuery",
    "Call",
    "CallIndex",
    "CoverageNote",
    "CoverageReason",
    "Crs",
    "Headcode",
    "IdentifyTrainRequest",
    "Journey",
    "Leg",
    "MatchConfidence",
    "PlanRequest",
    "PlanResult",
    "RailTime",
    "SearchConfig",
    "Segment",
    "Service",
    "ServiceCandidate",
    "ServiceRef",
    "Station",
    "TrainMatch",
    "Walk",
    "WalkableGraph",
    "WalkableGraphBuilder",
    "parse_time_sequence",
    "parse_time_sequence_reverse",
]
