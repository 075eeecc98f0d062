"""Shared board cache with a short time-to-live and single-flight fetching."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from onward_journeys.domain.contracts.board_cache import BoardCacheProtocol
from onward_journeys.domain.errors import ProviderUnavailable
from onward_journeys.domain.models.board import BoardKind

if TYPE_CHECKING:
    from onward_journeys.domain.models.board import Board, BoardQuery
    from onward_journeys.domain.models.crs import Crs
    from onward_journeys.domain.ports.board_provider import BoardProvider

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60.0
DEFAULT_MAX_ENTRIES = 1000


@dataclass(frozen=True)
class BoardKey:
    """Cache key. Boards are keyed by station, kind and query, never by service id."""

    station: Crs
    query: BoardQuery
    kind: BoardKind = BoardKind.DEPARTURES


@dataclass(frozen=True)
class _CacheEntry:
    board: Board
    fetched_at: float


class BoardCache(BoardCacheProtocol):
    """In-memory board cache shared by all planning requests.

    At most one underlying fetch runs per key at a time; concurrent callers for the same
    key join it. Entries expire ttl_seconds after they were fetched. Failures are never
    cached.
    """

    def __init__(
        self,
        provider: BoardProvider,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            provider: Board provider used on a miss.
            ttl_seconds: How long a fetched board stays valid.
            max_entries: Entry count above which the oldest entries are evicted.
            clock: Monotonic clock in seconds (injectable for tests).
        """
        self._provider = provider
        self._ttl_seconds = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: dict[BoardKey, _CacheEntry] = {}
        self._in_flight: dict[BoardKey, asyncio.Task[Board]] = {}
        self._fetch_count = 0

    @property
    def fetch_count(self) -> int:
        """Number of underlying provider fetches started."""
        return self._fetch_count

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    def invalidate_all(self) -> None:
        self._entries.clear()

    def _live_entry(self, key: BoardKey) -> _CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self._ttl_seconds:
            del self._entries[key]
            return None
        return entry

    async def get_or_fetch(self, station: Crs, query: BoardQuery) -> Board:
        """Return a live cached departure board, or join/start the single fetch for its key.

        Raises:
            ProviderUnavailable: If the fetch this caller joined failed.
        """
        return await self._get(BoardKey(station, query.normalized(), BoardKind.DEPARTURES))

    async def get_or_fetch_arrivals(self, station: Crs, query: BoardQuery) -> Board:
        """Return a live cached arrivals board, or join/start the single fetch for its key.

        Raises:
            ProviderUnavailable: If the fetch this caller joined failed.
        """
        return await self._get(BoardKey(station, query.normalized(), BoardKind.ARRIVALS))

    async def _get(self, key: BoardKey) -> Board:
        entry = self._live_entry(key)
        if entry is not None:
            return entry.board

        task = self._in_flight.get(key)
        if task is None:
            logger.debug(f"Board cache miss for {key.station} {key.kind.value}, fetching")
            self._fetch_count += 1
            task = asyncio.ensure_future(self._fetch(key))
            self._in_flight[key] = task
            task.add_done_callback(lambda done, k=key: self._on_fetch_done(k, done))
        else:
            logger.debug(f"Joining in-flight {key.kind.value} fetch for {key.station}")

        # Shielded so a caller that gives up does not cancel the fetch other callers share
        return await asyncio.shield(task)

    async def _fetch(self, key: BoardKey) -> Board:
        try:
            if key.kind is BoardKind.ARRIVALS:
                board = await self._provider.fetch_arrivals(key.station, key.query)
            else:
                board = await self._provider.fetch_board(key.station, key.query)
        except ProviderUnavailable:
            raise
        except Exception as e:
            raise ProviderUnavailable(key.station, f"unexpected provider error: {e}") from e

        self._store(key, board)
        return board

    def _store(self, key: BoardKey, board: Board) -> None:
        self._entries[key] = _CacheEntry(board=board, fetched_at=self._clock())
        if len(self._entries) > self._max_entries:
            oldest = min(self._entries, key=lambda k: self._entries[k].fetched_at)
            del self._entries[oldest]

    def _on_fetch_done(self, key: BoardKey, task: asyncio.Task[Board]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"{key.kind.value.capitalize()} fetch for {key.station} failed: {error}")
