"""HTTP client for the National Rail Knowledgebase stations feed."""

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

import aiohttp

from onward_journeys.adapters.api_request_logger import log_api_request
from onward_journeys.adapters.darwin_api.constants import API_KEY_HEADER, DEFAULT_HEADERS
from onward_journeys.adapters.stations.constants import (
    DEFAULT_TIMEOUT_SECONDS,
    STATIONS_BASE_URL,
    STATIONS_PATH,
)
from onward_journeys.domain.errors import StationListUnavailable, ValidationError
from onward_journeys.domain.models.crs import Crs
from onward_journeys.domain.models.station import Station

if TYPE_CHECKING:
    from aiohttp import ClientResponse, ClientSession

logger = logging.getLogger(__name__)


def parse_station_list(data: Any) -> list[Station]:
    """Turn a {"stations": [{"crsCode", "name"}, ...]} payload into stations.

    Entries with a missing name or an invalid code are dropped; codes are upper-cased.

    Raises:
        StationListUnavailable: If the payload has no stations array.
    """
    if not isinstance(data, dict) or not isinstance(data.get("stations"), list):
        raise StationListUnavailable("unexpected response shape")

    stations = []
    for entry in data["stations"]:
        if not isinstance(entry, dict) or not entry.get("name"):
            continue
        try:
            code = Crs.parse(str(entry.get("crsCode", "")))
        except ValidationError:
            logger.debug(f"Skipping station {entry.get('name')!r}: invalid CRS code")
            continue
        stations.append(Station(code, str(entry["name"])))
    return stations


class StationsHttpClient:
    """StationListProvider fetching the stations feed over HTTP."""

    def __init__(
        self,
        session: "ClientSession",
        api_key: str,
        base_url: str = STATIONS_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the client.

        Args:
            session: Shared aiohttp session; owned by the caller.
            api_key: Rail Data Marketplace key for the stations product.
            base_url: Feed base URL, without the /stations path.
            timeout_seconds: Total timeout for one request.
        """
        self._session = session
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    @property
    def stations_url(self) -> str:
        return f"{self._base_url}{STATIONS_PATH}"

    async def fetch_stations(self) -> list[Station]:
        """Fetch and parse the full station list.

        Raises:
            StationListUnavailable: On transport errors, error statuses or bad JSON.
        """
        url = self.stations_url
        headers = {**DEFAULT_HEADERS, API_KEY_HEADER: self._api_key}
        log_api_request("GET", url, headers=headers)

        try:
            async with self._session.get(url, headers=headers, timeout=self._timeout) as response:
                data = await self._handle_response(response)
        except asyncio.TimeoutError as e:
            raise StationListUnavailable("request timed out") from e
        except aiohttp.ClientError as e:
            raise StationListUnavailable(f"request failed: {e}") from e

        stations = parse_station_list(data)
        logger.info(f"Fetched {len(stations)} stations")
        return stations

    async def _handle_response(self, response: "ClientResponse") -> Any:
        if response.status in (401, 403):
            raise StationListUnavailable("unauthorized (check the stations API key)")
        if response.status != 200:
            body = await response.text()
            logger.error(f"Stations feed returned status {response.status}: {body[:200]}")
            raise StationListUnavailable(f"API error (HTTP {response.status})")

        text = await response.text()
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise StationListUnavailable(f"malformed JSON: {e}") from e
