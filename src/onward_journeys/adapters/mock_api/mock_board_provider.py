"""Board provider serving recorded Darwin boards from JSON files.

Lets the planner and CLI run without Darwin credentials. Files are named after the
station they describe, e.g. PAD.json. Query parameters are ignored: the data is static.
"""

import json
import logging
from pathlib import Path
from typing import Any

from onward_journeys.adapters.darwin_api.board_parser import BoardParseError, DarwinBoardParser
from onward_journeys.domain.errors import ProviderUnavailable, ValidationError
from onward_journeys.domain.models.board import Board, BoardQuery
from onward_journeys.domain.models.crs import Crs
from onward_journeys.domain.models.station import Station

logger = logging.getLogger(__name__)


def _load_boards(data_dir: Path) -> dict[Crs, dict[str, Any]]:
    if not data_dir.is_dir():
        raise ProviderUnavailable(None, f"mock data directory {data_dir} not found")

    boards: dict[Crs, dict[str, Any]] = {}
    for path in sorted(data_dir.glob("*.json")):
        try:
            station = Crs.parse(path.stem)
        except ValidationError:
            logger.warning(f"Ignoring mock board {path.name}: file name is not a CRS code")
            continue
        try:
            boards[station] = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ProviderUnavailable(station, f"cannot load {path}: {e}") from e
    return boards


class MockBoardProvider:
    """BoardProvider backed by a directory of <CRS>.json fixtures.

    Arrivals boards come from a separate directory when one is given. Without one, a
    station's departure fixture doubles as its arrivals board, which is enough for the
    previous calling points the planner reads from it.
    """

    def __init__(
        self,
        data_dir: str | Path,
        parser: DarwinBoardParser | None = None,
        arrivals_dir: str | Path | None = None,
    ) -> None:
        """Load every fixture in data_dir (and arrivals_dir).

        Raises:
            ProviderUnavailable: If a directory cannot be read or data_dir holds no fixtures.
        """
        self._data_dir = Path(data_dir)
        self._arrivals_dir = Path(arrivals_dir) if arrivals_dir is not None else None
        self._parser = parser or DarwinBoardParser()
        self._boards: dict[Crs, dict[str, Any]] = {}
        self._arrivals: dict[Crs, dict[str, Any]] = {}
        self.fetch_calls: list[Crs] = []
        self.arrival_calls: list[Crs] = []
        self.reload()

    def reload(self) -> None:
        """Re-read the fixture directories."""
        boards = _load_boards(self._data_dir)
        if not boards:
            raise ProviderUnavailable(None, f"no mock board files found in {self._data_dir}")
        arrivals = boards if self._arrivals_dir is None else _load_boards(self._arrivals_dir)

        self._boards = boards
        self._arrivals = arrivals
        logger.info(f"Loaded {len(boards)} mock boards from {self._data_dir}")

    def available_stations(self) -> list[Crs]:
        return sorted(self._boards)

    async def fetch_board(self, station: Crs, query: BoardQuery) -> Board:  # noqa: ARG002
        self.fetch_calls.append(station)
        return self._parse(station, self._boards, "mock board")

    async def fetch_arrivals(self, station: Crs, query: BoardQuery) -> Board:  # noqa: ARG002
        self.arrival_calls.append(station)
        return self._parse(station, self._arrivals, "mock arrivals board")

    async def fetch_stations(self) -> list[Station]:
        """Every station named anywhere in the departure fixtures."""
        names: dict[Crs, str] = {}
        for data in self._boards.values():
            _collect_names(data, names)
        return [Station(code, name) for code, name in sorted(names.items())]

    def _parse(self, station: Crs, source: dict[Crs, dict[str, Any]], what: str) -> Board:
        data = source.get(station)
        if data is None:
            available = ", ".join(str(code) for code in sorted(source))
            raise ProviderUnavailable(station, f"no {what} (available: {available})")

        try:
            return self._parser.parse_board(data)
        except BoardParseError as e:
            raise ProviderUnavailable(station, f"invalid {what}: {e}") from e


def _collect_names(data: dict[str, Any], names: dict[Crs, str]) -> None:
    _add_name(data.get("crs"), data.get("locationName"), names)
    for item in data.get("trainServices") or []:
        if not isinstance(item, dict):
            continue
        for location in item.get("destination") or []:
            if isinstance(location, dict):
                _add_name(location.get("crs"), location.get("locationName"), names)
        for key in ("previousCallingPoints", "subsequentCallingPoints"):
            for group in item.get(key) or []:
                for point in group.get("callingPoint") or []:
                    if isinstance(point, dict):
                        _add_name(point.get("crs"), point.get("locationName"), names)


def _add_name(raw_crs: Any, name: Any, names: dict[Crs, str]) -> None:
    if not raw_crs or not name:
        return
    try:
        names.setdefault(Crs.parse(str(raw_crs)), str(name))
    except ValidationError:
        logger.debug(f"Ignoring location {name!r} with invalid code {raw_crs!r}")
