"""Contracts (protocols) shared between the application and adapter layers."""

from onward_journeys.domain.contracts.board_cache import BoardCacheProtocol
from onward_journeys.domain.contracts.station_cache import StationCacheProtocol

__all__ = ["BoardCacheProtocol", "StationCacheProtocol"]
