"""Search configuration domain model."""

from dataclasses import dataclass, field
from datetime import timedelta

from onward_journeys.domain.models.board import BoardQuery


@dataclass(frozen=True)
class SearchConfig:
    """Bounds on a single planning search."""

    max_changes: int = 3  # Upper bound on changes between trains (walks are not changes)
    max_total_duration: timedelta = timedelta(hours=6)
    min_connection_margin: timedelta = timedelta(minutes=5)
    time_horizon: timedelta = timedelta(hours=2)  # Onward trains this long after arrival
    max_states_expanded: int = 5000  # Hard cap on search work per request
    max_walk_duration: timedelta = timedelta(minutes=15)
    max_results: int | None = 10  # Top-K after ranking; None keeps every journey
    board_query: BoardQuery = field(default_factory=BoardQuery)
    use_arrivals_index: bool = True  # Finish via the destination's arrivals board
    prune_dominated: bool = False  # See rank.remove_dominated

    def __post_init__(self) -> None:
        if self.max_changes < 0:
            raise ValueError("max_changes must not be negative")
        if self.max_states_expanded < 0:
            raise ValueError("max_states_expanded must not be negative")
        if self.max_results is not None and self.max_results < 1:
            raise ValueError("max_results must be at least 1 when set")
        for name in (
            "max_total_duration",
            "min_connection_margin",
            "time_horizon",
            "max_walk_duration",
        ):
            if getattr(self, name) < timedelta(0):
                raise ValueError(f"{name} must not be negative")
