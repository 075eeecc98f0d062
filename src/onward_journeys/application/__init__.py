"""Application layer - use cases."""

from onward_journeys.application.anchor_resolver import AnchorResolver
from onward_journeys.application.identify import filter_and_rank_matches, identify_train
from onward_journeys.application.planner import JourneyPlanner
from onward_journeys.application.rank import deduplicate, rank_journeys, remove_dominated
from onward_journeys.application.services import JourneyPlanningService
from onward_journeys.application.station_names import StationNames

__all__ = [
    "AnchorResolver",
    "JourneyPlanner",
    "JourneyPlanningService",
    "StationNames",
    "deduplicate",
    "filter_and_rank_matches",
    "identify_train",
    "rank_journeys",
    "remove_dominated",
]
