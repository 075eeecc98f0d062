"""Protocol for board caching."""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from onward_journeys.domain.models.board import Board, BoardQuery
    from onward_journeys.domain.models.crs import Crs


class BoardCacheProtocol(Protocol):
    """Protocol for a shared, short-lived cache of departure and arrivals boards."""

    async def get_or_fetch(self, station: "Crs", query: "BoardQuery") -> "Board":
        """Return a live cached departure board, or fetch it once for all concurrent callers.

        Args:
            station: Station whose board is wanted.
            query: Provider query parameters; normalised into the cache key.

        Returns:
            The board snapshot.

        Raises:
            ProviderUnavailable: If the underlying fetch failed.
        """
        ...

    async def get_or_fetch_arrivals(self, station: "Crs", query: "BoardQuery") -> "Board":
        """Same as get_or_fetch, for the station's arrivals board."""
        ...
