"""JSON file cache for the station list."""

import json
import logging
import time
from collections.abc import Callable
from pathlib import Path

from onward_journeys.adapters.stations.constants import (
    DEFAULT_CACHE_FILE,
    DEFAULT_CACHE_TTL_SECONDS,
)
from onward_journeys.domain.errors import StationListUnavailable, ValidationError
from onward_journeys.domain.models.crs import Crs
from onward_journeys.domain.models.station import Station

logger = logging.getLogger(__name__)


class StationFileCache:
    """Keeps the last fetched station list on disk as {"cached_at_secs", "stations"}."""

    def __init__(
        self,
        path: str | Path = DEFAULT_CACHE_FILE,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache.

        Args:
            path: Cache file location; parent directories are created on save.
            ttl_seconds: Age after which the file is ignored.
            clock: Wall clock in seconds since the epoch (injectable for tests).
        """
        self._path = Path(path)
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    def load(self) -> list[Station] | None:
        """Stations from the file, or None when it is missing, expired or unreadable."""
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            cached_at = float(data["cached_at_secs"])
            entries = data["stations"]
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring unreadable station cache {self._path}: {e}")
            return None

        age = self._clock() - cached_at
        if age >= self._ttl_seconds:
            logger.debug(f"Station cache {self._path} expired ({age:.0f}s old)")
            return None

        stations = []
        for entry in entries:
            try:
                stations.append(Station(Crs.parse(entry["crs"]), entry["name"]))
            except (KeyError, TypeError, ValidationError):
                continue
        logger.debug(f"Loaded {len(stations)} stations from {self._path}")
        return stations

    def save(self, stations: list[Station]) -> None:
        """Write the stations with the current time.

        Raises:
            StationListUnavailable: If the file cannot be written.
        """
        data = {
            "cached_at_secs": int(self._clock()),
            "stations": [{"crs": str(station.crs), "name": station.name} for station in stations],
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(data), encoding="utf-8")
        except OSError as e:
            raise StationListUnavailable(f"cannot write cache {self._path}: {e}") from e
