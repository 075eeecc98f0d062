"""Re-resolution of the passenger's current service from live boards."""

import logging
from collections.abc import Sequence

from onward_journeys.domain.contracts.board_cache import BoardCacheProtocol
from onward_journeys.domain.errors import InvalidAnchor, ProviderUnavailable
from onward_journeys.domain.models.board import BoardQuery
from onward_journeys.domain.models.crs import Crs
from onward_journeys.domain.models.service import Service, ServiceRef

logger = logging.getLogger(__name__)


class AnchorResolver:
    """Finds a service by its board id.

    Board ids are ephemeral, so a service is always looked up on a (cached) board and
    never remembered by id. When the id has gone from its own board the resolver tries a
    list of large stations the service may also be shown at.
    """

    def __init__(
        self,
        board_cache: BoardCacheProtocol,
        query: BoardQuery | None = None,
        fallback_stations: Sequence[Crs] = (),
    ) -> None:
        self._board_cache = board_cache
        self._query = query or BoardQuery()
        self._fallback_stations = tuple(fallback_stations)

    async def resolve(self, service_ref: ServiceRef) -> Service:
        """Return the service with the ref's id.

        Raises:
            ProviderUnavailable: If the ref's own board cannot be fetched.
            InvalidAnchor: If no board still lists the service.
        """
        board = await self._board_cache.get_or_fetch(service_ref.board_station, self._query)
        service = board.find_service(service_ref.service_id)
        if service is not None:
            return service

        logger.info(
            f"Service {service_ref.service_id} not on {service_ref.board_station} board, "
            f"trying fallback stations"
        )
        for station in self._fallback_stations:
            if station == service_ref.board_station:
                continue
            try:
                fallback_board = await self._board_cache.get_or_fetch(station, self._query)
            except ProviderUnavailable as e:
                logger.warning(f"Fallback board {station} unavailable: {e.reason}")
                continue
            service = fallback_board.find_service(service_ref.service_id)
            if service is not None:
                logger.info(f"Found service {service_ref.service_id} on {station} board")
                return service

        raise InvalidAnchor(
            f"service {service_ref.service_id} is no longer on the "
            f"{service_ref.board_station} board (it may have expired)"
        )
