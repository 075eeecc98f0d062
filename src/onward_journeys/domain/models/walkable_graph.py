"""Walkable connections between nearby stations.

Edges are directed: declaring A -> B says nothing about B -> A. The graph is configured
statically and is never inferred from rail data.
"""

from collections.abc import Iterable, Mapping
from datetime import timedelta

from onward_journeys.domain.models.crs import Crs


class WalkableGraph:
    """Static directed adjacency of station-to-station walks."""

    def __init__(self, edges: Mapping[Crs, Iterable[tuple[Crs, timedelta]]] | None = None) -> None:
        self._edges: dict[Crs, tuple[tuple[Crs, timedelta], ...]] = {
            origin: tuple(neighbors) for origin, neighbors in (edges or {}).items()
        }

    def neighbors(self, station: Crs) -> tuple[tuple[Crs, timedelta], ...]:
        """Stations reachable on foot from the given station, with walking time."""
        return self._edges.get(station, ())

    def walk_duration(self, origin: Crs, destination: Crs) -> timedelta | None:
        for neighbor, duration in self.neighbors(origin):
            if neighbor == destination:
                return duration
        return None

    @property
    def edge_count(self) -> int:
        return sum(len(neighbors) for neighbors in self._edges.values())

    def __bool__(self) -> bool:
        return self.edge_count > 0


class WalkableGraphBuilder:
    """Incrementally declares walk edges, then freezes them into a WalkableGraph."""

    def __init__(self) -> None:
        self._edges: dict[Crs, dict[Crs, timedelta]] = {}

    def add(
        self, origin: Crs, destination: Crs, minutes: float, bidirectional: bool = False
    ) -> "WalkableGraphBuilder":
        duration = timedelta(minutes=minutes)
        self._edges.setdefault(origin, {})[destination] = duration
        if bidirectional:
            self._edges.setdefault(destination, {})[origin] = duration
        return self

    def build(self) -> WalkableGraph:
        return WalkableGraph(
            {origin: list(targets.items()) for origin, targets in self._edges.items()}
        )
