"""Station name lookup and search."""

import logging
from typing import TYPE_CHECKING

from onward_journeys.domain.errors import StationListUnavailable
from onward_journeys.domain.models.crs import Crs
from onward_journeys.domain.models.station import Station

if TYPE_CHECKING:
    from onward_journeys.domain.contracts import StationCacheProtocol
    from onward_journeys.domain.ports import StationListProvider

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 10
MAX_SEARCH_LIMIT = 50


def _relevance(query: str, query_words: list[str], station: Station) -> int:
    """Score how well a station matches a lower-cased query; 0 means no match."""
    name = station.name.lower()
    if query == str(station.crs).lower():
        return 10000
    if query == name:
        return 9000
    if name.startswith(query):
        return 5000
    if query in name:
        return 2000
    if query_words and all(word in name for word in query_words):
        return 500
    return 0


class StationNames:
    """In-memory map of station codes to names, filled from a provider.

    With a cache, a fresh stored list is used instead of contacting the provider, and
    every fetched list is stored for the next run.
    """

    def __init__(
        self,
        provider: "StationListProvider",
        cache: "StationCacheProtocol | None" = None,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._names: dict[Crs, str] = {}

    def __len__(self) -> int:
        return len(self._names)

    async def load(self) -> int:
        """Fill from the cache when it has a fresh list, otherwise from the provider.

        Returns:
            Number of stations known afterwards.

        Raises:
            StationListUnavailable: If there is no cached list and the fetch failed.
        """
        if self._cache is not None:
            cached = self._cache.load()
            if cached is not None:
                self._replace(cached)
                logger.info(f"Using {len(self)} cached station names")
                return len(self)
        return await self.refresh()

    async def refresh(self) -> int:
        """Fetch the list from the provider, replacing what is held and what is cached.

        A failure to write the cache is logged; the fetched names are still used.

        Raises:
            StationListUnavailable: If the fetch failed. The names held before are kept.
        """
        stations = await self._provider.fetch_stations()
        self._replace(stations)
        if self._cache is not None:
            try:
                self._cache.save(stations)
            except StationListUnavailable as e:
                logger.warning(f"Could not cache station names: {e.reason}")
        return len(self)

    def _replace(self, stations: list[Station]) -> None:
        self._names = {station.crs: station.name for station in stations}

    def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[Station]:
        """Stations whose code or name matches the query, best match first.

        An exact code wins, then an exact name, then names starting with the query, then
        names containing it, then names containing every word of it. Ties are ordered by
        name. limit is capped at MAX_SEARCH_LIMIT.
        """
        needle = query.strip().lower()
        limit = min(limit, MAX_SEARCH_LIMIT)
        if not needle or limit < 1:
            return []

        words = needle.split()
        scored = []
        for crs, name in self._names.items():
            station = Station(crs, name)
            score = _relevance(needle, words, station)
            if score:
                scored.append((-score, name, station))
        scored.sort(key=lambda item: (item[0], item[1]))
        return [station for _, _, station in scored[:limit]]
