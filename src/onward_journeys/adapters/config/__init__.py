"""Configuration adapters."""

from onward_journeys.adapters.config.app_config import AppConfig
from onward_journeys.adapters.config.search_config_loader import SearchConfigLoader
from onward_journeys.adapters.config.walkable_graph_loader import WalkableGraphLoader

__all__ = ["AppConfig", "SearchConfigLoader", "WalkableGraphLoader"]
