"""Board provider port."""

from typing import Protocol

from onward_journeys.domain.models.board import Board, BoardQuery
from onward_journeys.domain.models.crs import Crs


class BoardProvider(Protocol):
    """Port for fetching live boards for a station."""

    async def fetch_board(self, station: Crs, query: BoardQuery) -> Board:
        """Fetch the current departure board for a station.

        Raises:
            ProviderUnavailable: If the board could not be fetched.
        """
        ...

    async def fetch_arrivals(self, station: Crs, query: BoardQuery) -> Board:
        """Fetch the current arrivals board for a station, with previous calling points.

        Raises:
            ProviderUnavailable: If the board could not be fetched or the provider has
                no arrivals feed.
        """
        ...
