"""Search configuration loader."""

from datetime import timedelta
from typing import Any

from onward_journeys.adapters.config.app_config import AppConfig
from onward_journeys.domain.models.board import BoardQuery
from onward_journeys.domain.models.search_config import SearchConfig

# TOML key -> SearchConfig field, for values given in minutes
_MINUTE_FIELDS = {
    "max_total_duration_minutes": "max_total_duration",
    "min_connection_margin_minutes": "min_connection_margin",
    "time_horizon_minutes": "time_horizon",
    "max_walk_duration_minutes": "max_walk_duration",
}


class SearchConfigLoader:
    """Builds the default SearchConfig from the [search] table of the TOML config."""

    @staticmethod
    def load_from_data(search_data: dict[str, Any]) -> SearchConfig:
        """Build a SearchConfig; keys that are absent keep their built-in defaults.

        Raises:
            ValueError: If a value has the wrong type or is out of range.
        """
        kwargs: dict[str, Any] = {}

        for key in ("max_changes", "max_states_expanded"):
            if key in search_data:
                kwargs[key] = _as_int(search_data[key], key)

        for key, field_name in _MINUTE_FIELDS.items():
            if key in search_data:
                kwargs[field_name] = timedelta(minutes=_as_number(search_data[key], key))

        if "max_results" in search_data:
            max_results = search_data["max_results"]
            # 0 disables truncation
            kwargs["max_results"] = _as_int(max_results, "max_results") or None

        for key in ("use_arrivals_index", "prune_dominated"):
            if key in search_data:
                kwargs[key] = _as_bool(search_data[key], key)

        defaults = BoardQuery()
        kwargs["board_query"] = BoardQuery(
            time_offset=_as_int(
                search_data.get("board_time_offset", defaults.time_offset), "board_time_offset"
            ),
            time_window=_as_int(
                search_data.get("board_time_window", defaults.time_window), "board_time_window"
            ),
        ).normalized()

        return SearchConfig(**kwargs)

    @staticmethod
    def load(config: AppConfig) -> SearchConfig:
        return SearchConfigLoader.load_from_data(config.get_search_config_data())


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"search.{key} must be an integer, got {value!r}")
    return value


def _as_bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"search.{key} must be true or false, got {value!r}")
    return value


def _as_number(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValueError(f"search.{key} must be a number, got {value!r}")
    return value
