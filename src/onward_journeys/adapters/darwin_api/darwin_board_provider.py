"""Live board provider backed by Darwin."""

import logging
from typing import Any

from onward_journeys.adapters.darwin_api.board_parser import BoardParseError, DarwinBoardParser
from onward_journeys.adapters.darwin_api.http_client import DarwinHttpClient
from onward_journeys.domain.errors import ProviderUnavailable
from onward_journeys.domain.models.board import Board, BoardQuery
from onward_journeys.domain.models.crs import Crs

logger = logging.getLogger(__name__)


class DarwinBoardProvider:
    """BoardProvider that fetches live boards over HTTP and parses them."""

    def __init__(self, client: DarwinHttpClient, parser: DarwinBoardParser | None = None) -> None:
        self._client = client
        self._parser = parser or DarwinBoardParser()

    async def fetch_board(self, station: Crs, query: BoardQuery) -> Board:
        data = await self._client.fetch_departure_board(station, query)
        board = self._parse(station, data)
        logger.debug(f"Fetched {len(board.services)} departures for {station}")
        return board

    async def fetch_arrivals(self, station: Crs, query: BoardQuery) -> Board:
        data = await self._client.fetch_arrival_board(station, query)
        board = self._parse(station, data)
        logger.debug(f"Fetched {len(board.services)} arrivals for {station}")
        return board

    def _parse(self, station: Crs, data: dict[str, Any]) -> Board:
        try:
            board = self._parser.parse_board(data)
        except BoardParseError as e:
            raise ProviderUnavailable(station, f"parse error: {e}") from e

        if board.station != station:
            logger.warning(f"Requested board for {station} but Darwin answered for {board.station}")
        return board
