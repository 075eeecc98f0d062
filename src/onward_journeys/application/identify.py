"""Identify which train a passenger is on from what they can see."""

import logging

from onward_journeys.domain.contracts.board_cache import BoardCacheProtocol
from onward_journeys.domain.models.board import Board, BoardQuery
from onward_journeys.domain.models.crs import Crs
from onward_journeys.domain.models.service import ServiceCandidate
from onward_journeys.domain.models.train_match import (
    IdentifyTrainRequest,
    MatchConfidence,
    TrainMatch,
)

logger = logging.getLogger(__name__)


def filter_and_rank_matches(board: Board, terminus: Crs | None = None) -> list[TrainMatch]:
    """Board services that could be the passenger's train, best first.

    With a terminus only services terminating there are kept (EXACT); without one every
    service on the next station's board is a NEXT_STATION_ONLY candidate. Ties are broken
    by departure time.
    """
    confidence = MatchConfidence.EXACT if terminus else MatchConfidence.NEXT_STATION_ONLY
    matches = []
    for service in board.services:
        if terminus is not None:
            last = service.destination_call
            if last is None or last.station != terminus:
                continue
        matches.append(TrainMatch(ServiceCandidate.at_board_station(service), confidence))

    def sort_key(match: TrainMatch) -> tuple:
        departure = match.candidate.departure_time
        return (match.confidence, departure is None, departure)

    return sorted(matches, key=sort_key)


async def identify_train(
    board_cache: BoardCacheProtocol,
    request: IdentifyTrainRequest,
    query: BoardQuery | None = None,
) -> list[TrainMatch]:
    """Match the passenger's observations against the next station's board.

    Raises:
        ProviderUnavailable: If the next station's board cannot be fetched.
    """
    board = await board_cache.get_or_fetch(request.next_station, query or BoardQuery())
    matches = filter_and_rank_matches(board, request.terminus)
    logger.info(
        f"{len(matches)} candidate trains calling at {request.next_station}"
        + (f" for {request.terminus}" if request.terminus else "")
    )
    return matches
