"""Tests for the stations feed client and the station list file cache."""

import asyncio
import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from builders import crs

from onward_journeys.adapters.stations import (
    StationFileCache,
    StationsHttpClient,
    parse_station_list,
)
from onward_journeys.domain.errors import StationListUnavailable
from onward_journeys.domain.models import Station


def _response(status: int = 200, body: str = "{}"):
    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value=body)
    return response


def _session(response=None, error: Exception | None = None) -> MagicMock:
    context = MagicMock()
    if error is not None:
        context.__aenter__ = AsyncMock(side_effect=error)
    else:
        context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)
    session = MagicMock()
    session.get = MagicMock(return_value=context)
    return session


class TestParseStationList:
    """Tests for parse_station_list."""

    def test_invalid_entries_are_dropped(self) -> None:
        data = {
            "stations": [
                {"crsCode": "rdg", "name": "Reading"},
                {"crsCode": "XXXX", "name": "Too Long"},
                {"crsCode": "OXF"},
                "not an entry",
            ]
        }

        assert parse_station_list(data) == [Station(crs("RDG"), "Reading")]

    @pytest.mark.parametrize("data", [[], {}, {"stations": "RDG"}])
    def test_unexpected_shape_is_unavailable(self, data) -> None:
        with pytest.raises(StationListUnavailable, match="unexpected response shape"):
            parse_station_list(data)


class TestStationsHttpClient:
    """Tests for StationsHttpClient."""

    @pytest.mark.asyncio
    async def test_fetches_with_key(self) -> None:
        body = json.dumps({"stations": [{"crsCode": "PAD", "name": "London Paddington"}]})
        session = _session(_response(body=body))
        client = StationsHttpClient(session, "stations-key", base_url="https://example.com/kb/")

        stations = await client.fetch_stations()

        assert stations == [Station(crs("PAD"), "London Paddington")]
        args, kwargs = session.get.call_args
        assert args[0] == "https://example.com/kb/stations"
        assert kwargs["headers"]["x-apikey"] == "stations-key"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_rejected_key_is_unauthorized(self, status: int) -> None:
        client = StationsHttpClient(_session(_response(status=status)), "bad-key")

        with pytest.raises(StationListUnavailable, match="unauthorized"):
            await client.fetch_stations()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("session", "message"),
        [
            (_session(_response(status=500, body="oops")), "HTTP 500"),
            (_session(_response(body="<html>")), "malformed JSON"),
            (_session(error=asyncio.TimeoutError()), "timed out"),
            (_session(error=aiohttp.ClientConnectionError("refused")), "request failed"),
        ],
    )
    async def test_failures_are_unavailable(self, session: MagicMock, message: str) -> None:
        client = StationsHttpClient(session, "stations-key")

        with pytest.raises(StationListUnavailable, match=message):
            await client.fetch_stations()


class TestStationFileCache:
    """Tests for StationFileCache."""

    def test_saved_list_is_loaded_back(self, tmp_path: Path) -> None:
        """Given a saved list, when loading within the TTL, then it is returned."""
        path = tmp_path / "nested" / "stations.json"
        now = [1_000_000.0]
        cache = StationFileCache(path, ttl_seconds=3600, clock=lambda: now[0])
        stations = [Station(crs("RDG"), "Reading"), Station(crs("OXF"), "Oxford")]

        cache.save(stations)
        now[0] += 60

        assert path.exists()
        assert cache.load() == stations

    def test_expired_list_is_ignored(self, tmp_path: Path) -> None:
        now = [1_000_000.0]
        cache = StationFileCache(tmp_path / "stations.json", ttl_seconds=3600, clock=lambda: now[0])
        cache.save([Station(crs("RDG"), "Reading")])

        now[0] += 3600

        assert cache.load() is None

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert StationFileCache(tmp_path / "absent.json").load() is None

    def test_unreadable_file_is_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "stations.json"
        path.write_text("{not json", encoding="utf-8")

        assert StationFileCache(path).load() is None

    def test_unwritable_location_is_unavailable(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("", encoding="utf-8")
        cache = StationFileCache(blocker / "stations.json")

        with pytest.raises(StationListUnavailable, match="cannot write cache"):
            cache.save([Station(crs("RDG"), "Reading")])
