"""Walkable graph loader."""

import logging
from typing import Any

from onward_journeys.adapters.config.app_config import AppConfig
from onward_journeys.domain.models.crs import Crs
from onward_journeys.domain.models.walkable_graph import WalkableGraph, WalkableGraphBuilder

logger = logging.getLogger(__name__)


class WalkableGraphLoader:
    """Builds the WalkableGraph from [[walkable]] entries of the TOML config.

    Each entry is one directed edge: from, to, minutes. Setting bidirectional = true
    declares the reverse edge with the same duration.
    """

    @staticmethod
    def load_from_data(edges: list[dict[str, Any]]) -> WalkableGraph:
        """Build the graph.

        Raises:
            ValueError: If an entry is missing a field or has an invalid station/duration.
        """
        builder = WalkableGraphBuilder()
        for position, edge in enumerate(edges):
            try:
                origin = Crs.parse(str(edge["from"]))
                destination = Crs.parse(str(edge["to"]))
                minutes = edge["minutes"]
            except KeyError as e:
                raise ValueError(f"walkable entry {position} is missing {e}") from e

            if isinstance(minutes, bool) or not isinstance(minutes, int | float) or minutes <= 0:
                raise ValueError(f"walkable entry {position} has invalid minutes {minutes!r}")
            if origin == destination:
                raise ValueError(f"walkable entry {position} walks from {origin} to itself")

            builder.add(origin, destination, minutes, bidirectional=bool(edge.get("bidirectional")))

        graph = builder.build()
        logger.info(f"Loaded {graph.edge_count} walkable edges")
        return graph

    @staticmethod
    def load(config: AppConfig) -> WalkableGraph:
        return WalkableGraphLoader.load_from_data(config.get_walkable_config())
