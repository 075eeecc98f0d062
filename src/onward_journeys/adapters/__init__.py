"""Adapters layer - external system integrations."""

from onward_journeys.adapters.cache import BoardCache
from onward_journeys.adapters.config import AppConfig
from onward_journeys.adapters.darwin_api import DarwinBoardProvider, DarwinHttpClient
from onward_journeys.adapters.mock_api import MockBoardProvider
from onward_journeys.adapters.stations import StationFileCache, StationsHttpClient

__all__ = [
    "AppConfig",
    "BoardCache",
    "DarwinBoardProvider",
    "DarwinHttpClient",
    "MockBoardProvider",
    "StationFileCache",
    "StationsHttpClient",
]
