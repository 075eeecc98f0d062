"""Composition root: builds the planning service from configuration."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiohttp

from onward_journeys.adapters.cache import BoardCache
from onward_journeys.adapters.config import AppConfig, SearchConfigLoader, WalkableGraphLoader
from onward_journeys.adapters.darwin_api import (
    DarwinBoardParser,
    DarwinBoardProvider,
    DarwinHttpClient,
)
from onward_journeys.adapters.mock_api import MockBoardProvider
from onward_journeys.adapters.stations import StationFileCache, StationsHttpClient
from onward_journeys.application.services import JourneyPlanningService
from onward_journeys.application.station_names import StationNames
from onward_journeys.domain.ports import BoardProvider

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def create_board_provider(
    config: AppConfig, session: aiohttp.ClientSession | None = None
) -> BoardProvider:
    """Mock fixtures when MOCK_DATA_DIR is set, live Darwin otherwise.

    Raises:
        ValueError: If Darwin is needed but no API key or session is available.
    """
    parser = DarwinBoardParser(config.timezone)
    if config.mock_data_dir:
        logger.info(f"Using mock boards from {config.mock_data_dir}")
        return MockBoardProvider(
            config.mock_data_dir, parser, arrivals_dir=config.mock_arrivals_dir
        )

    if not config.darwin_api_key:
        raise ValueError("DARWIN_API_KEY must be set (or MOCK_DATA_DIR for offline use)")
    if session is None:
        raise ValueError("an aiohttp session is required for the live Darwin provider")

    client = DarwinHttpClient(
        session,
        config.darwin_api_key,
        base_url=config.darwin_base_url,
        timeout_seconds=config.darwin_api_timeout,
        max_concurrent=config.darwin_max_concurrent,
        min_delay_seconds=config.darwin_min_delay_seconds,
        num_rows=config.darwin_num_rows,
        arrivals_api_key=config.darwin_arrivals_api_key,
        arrivals_base_url=config.darwin_arrivals_base_url,
    )
    return DarwinBoardProvider(client, parser)


def create_planning_service(config: AppConfig, provider: BoardProvider) -> JourneyPlanningService:
    search_config = SearchConfigLoader.load(config)
    walkable = WalkableGraphLoader.load(config)
    board_cache = BoardCache(
        provider,
        ttl_seconds=config.board_cache_ttl_seconds,
        max_entries=config.board_cache_max_entries,
    )
    return JourneyPlanningService(
        board_cache,
        walkable,
        default_config=search_config,
        fallback_stations=config.get_fallback_stations(),
        deadline_seconds=config.plan_deadline_seconds,
    )


@asynccontextmanager
async def planning_service(config: AppConfig) -> AsyncIterator[JourneyPlanningService]:
    """Planning service whose HTTP session lives as long as the context."""
    if config.mock_data_dir:
        yield create_planning_service(config, create_board_provider(config))
        return

    async with aiohttp.ClientSession() as session:
        yield create_planning_service(config, create_board_provider(config, session))


def create_station_names(
    config: AppConfig, session: aiohttp.ClientSession | None = None
) -> StationNames:
    """Names from the mock boards when MOCK_DATA_DIR is set, the stations feed otherwise.

    Raises:
        ValueError: If the feed is needed but no API key or session is available.
    """
    if config.mock_data_dir:
        return StationNames(MockBoardProvider(config.mock_data_dir))

    if not config.stations_api_key:
        raise ValueError("STATIONS_API_KEY must be set (or MOCK_DATA_DIR for offline use)")
    if session is None:
        raise ValueError("an aiohttp session is required for the stations feed")

    client = StationsHttpClient(
        session,
        config.stations_api_key,
        base_url=config.stations_base_url,
        timeout_seconds=config.darwin_api_timeout,
    )
    cache = StationFileCache(config.station_cache_file, config.station_cache_ttl_seconds)
    return StationNames(client, cache)


@asynccontextmanager
async def station_names(config: AppConfig) -> AsyncIterator[StationNames]:
    """Station names whose HTTP session lives as long as the context."""
    if config.mock_data_dir:
        yield create_station_names(config)
        return

    async with aiohttp.ClientSession() as session:
        yield create_station_names(config, session)
