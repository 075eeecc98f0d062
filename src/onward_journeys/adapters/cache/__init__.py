"""Board caching adapters."""

from onward_journeys.adapters.cache.board_cache import BoardCache, BoardKey

__all__ = ["BoardCache", "BoardKey"]
