"""Application services (use cases) for onward journey planning."""

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from onward_journeys.application.anchor_resolver import AnchorResolver
from onward_journeys.application.identify import identify_train
from onward_journeys.application.planner import JourneyPlanner
from onward_journeys.domain.errors import InvalidAnchor
from onward_journeys.domain.models import (
    Board,
    Crs,
    IdentifyTrainRequest,
    PlanRequest,
    PlanResult,
    SearchConfig,
    ServiceCandidate,
    ServiceRef,
    TrainMatch,
)

if TYPE_CHECKING:
    from onward_journeys.domain.contracts import BoardCacheProtocol
    from onward_journeys.domain.models import WalkableGraph

logger = logging.getLogger(__name__)


class JourneyPlanningService:
    """Entry point for board lookups, train identification and journey planning."""

    def __init__(
        self,
        board_cache: "BoardCacheProtocol",
        walkable: "WalkableGraph | None" = None,
        default_config: SearchConfig | None = None,
        fallback_stations: Sequence[Crs] = (),
        deadline_seconds: float | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            board_cache: Shared board cache.
            walkable: Directed walking links between nearby stations.
            default_config: Search bounds for requests that do not bring their own.
            fallback_stations: Boards to search when a service id has left its own board.
            deadline_seconds: Wall-clock budget per planning request.
        """
        self._board_cache = board_cache
        self._default_config = default_config or SearchConfig()
        self._deadline_seconds = deadline_seconds
        self._planner = JourneyPlanner(board_cache, walkable)
        self._resolver = AnchorResolver(
            board_cache, self._default_config.board_query, fallback_stations
        )

    @property
    def default_config(self) -> SearchConfig:
        return self._default_config

    async def get_board(self, station: Crs) -> Board:
        return await self._board_cache.get_or_fetch(station, self._default_config.board_query)

    async def identify(self, request: IdentifyTrainRequest) -> list[TrainMatch]:
        return await identify_train(
            self._board_cache, request, self._default_config.board_query
        )

    async def plan(self, request: PlanRequest) -> PlanResult:
        """Plan onward journeys for a passenger aboard the requested service.

        Raises:
            InvalidAnchor: If the service has expired or the position is not on it.
            ProviderUnavailable: If the service's own board cannot be fetched.
            NoRouteFound: If the completed search found nothing.
        """
        service = await self._resolver.resolve(
            ServiceRef(request.service_id, request.board_station)
        )
        if not service.has_call(request.position):
            raise InvalidAnchor(
                f"position {request.position} is not on service {request.service_id} "
                f"({len(service.calls)} calls)"
            )

        config = request.search_config or self._default_config
        anchor = ServiceCandidate(service, request.position)
        logger.debug(
            f"Anchor: {service.train_identity} at {anchor.board_call.station} "
            f"(call {request.position}), destination {request.destination}"
        )
        return await self._planner.plan(
            anchor, request.destination, config, deadline_seconds=self._deadline_seconds
        )
