"""HTTP client for the Darwin Live Departure Boards API.

API Documentation: https://raildata.org.uk (Live Departure Board - Staff Version)
"""

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

import aiohttp

from onward_journeys.adapters.api_rate_limiter import ApiRateLimiter
from onward_journeys.adapters.api_request_logger import log_api_request
from onward_journeys.adapters.darwin_api.constants import (
    API_KEY_HEADER,
    ARRIVAL_BOARD_PATH,
    DARWIN_API_MIN_DELAY_SECONDS,
    DARWIN_ARRIVALS_BASE_URL,
    DARWIN_BASE_URL,
    DEFAULT_HEADERS,
    DEFAULT_MAX_CONCURRENT,
    DEFAULT_NUM_ROWS,
    DEFAULT_TIMEOUT_SECONDS,
    DEPARTURE_BOARD_PATH,
)
from onward_journeys.domain.errors import ProviderUnavailable

if TYPE_CHECKING:
    from aiohttp import ClientResponse, ClientSession

    from onward_journeys.domain.models.board import BoardQuery
    from onward_journeys.domain.models.crs import Crs

logger = logging.getLogger(__name__)


class DarwinHttpClient:
    """Fetches raw departure and arrivals boards with calling points from Darwin."""

    def __init__(
        self,
        session: "ClientSession",
        api_key: str,
        base_url: str = DARWIN_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        min_delay_seconds: float = DARWIN_API_MIN_DELAY_SECONDS,
        num_rows: int = DEFAULT_NUM_ROWS,
        arrivals_api_key: str | None = None,
        arrivals_base_url: str = DARWIN_ARRIVALS_BASE_URL,
    ) -> None:
        """Initialize the client.

        Args:
            session: Shared aiohttp session; owned by the caller.
            api_key: Rail Data Marketplace key for the departure board product.
            base_url: LDBWS base URL, without the /api/... path.
            timeout_seconds: Total timeout for one request.
            max_concurrent: Maximum requests in flight from this client.
            min_delay_seconds: Minimum spacing between requests to Darwin.
            num_rows: Number of services requested per board.
            arrivals_api_key: Key for the arrivals board product; without it arrivals
                requests fail with ProviderUnavailable.
            arrivals_base_url: LDBWS base URL of the arrivals board product.
        """
        self._session = session
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._min_delay_seconds = min_delay_seconds
        self._num_rows = num_rows
        self._arrivals_api_key = arrivals_api_key
        self._arrivals_base_url = arrivals_base_url.rstrip("/")
        self._rate_limiter: ApiRateLimiter | None = None

    async def _get_rate_limiter(self) -> ApiRateLimiter:
        if self._rate_limiter is None:
            self._rate_limiter = await ApiRateLimiter.get_instance(
                "darwin", self._min_delay_seconds
            )
        return self._rate_limiter

    def board_url(self, station: "Crs") -> str:
        return f"{self._base_url}{DEPARTURE_BOARD_PATH}/{station}"

    def arrivals_url(self, station: "Crs") -> str:
        return f"{self._arrivals_base_url}{ARRIVAL_BOARD_PATH}/{station}"

    async def fetch_departure_board(self, station: "Crs", query: "BoardQuery") -> dict[str, Any]:
        """Fetch the departure board JSON for a station.

        Raises:
            ProviderUnavailable: On transport errors, timeouts, error statuses or bad JSON.
        """
        return await self._get_board(self.board_url(station), self._api_key, station, query)

    async def fetch_arrival_board(self, station: "Crs", query: "BoardQuery") -> dict[str, Any]:
        """Fetch the arrivals board JSON for a station.

        Raises:
            ProviderUnavailable: If no arrivals key is configured, or as for departures.
        """
        if not self._arrivals_api_key:
            raise ProviderUnavailable(
                station, "arrivals board not configured (set DARWIN_ARRIVALS_API_KEY)"
            )
        return await self._get_board(
            self.arrivals_url(station), self._arrivals_api_key, station, query
        )

    async def _get_board(
        self, url: str, api_key: str, station: "Crs", query: "BoardQuery"
    ) -> dict[str, Any]:
        normalized = query.normalized()
        params = {
            "numRows": self._num_rows,
            "timeOffset": normalized.time_offset,
            "timeWindow": normalized.time_window,
        }
        headers = {**DEFAULT_HEADERS, API_KEY_HEADER: api_key}
        log_api_request("GET", url, params=params, headers=headers)

        rate_limiter = await self._get_rate_limiter()
        async with self._semaphore:
            await rate_limiter.acquire()
            try:
                async with self._session.get(
                    url, params=params, headers=headers, timeout=self._timeout
                ) as response:
                    return await self._handle_board_response(response, station)
            except asyncio.TimeoutError as e:
                raise ProviderUnavailable(station, "request timed out") from e
            except aiohttp.ClientError as e:
                raise ProviderUnavailable(station, f"request failed: {e}") from e

    async def _handle_board_response(
        self, response: "ClientResponse", station: "Crs"
    ) -> dict[str, Any]:
        if response.status == 401:
            raise ProviderUnavailable(station, "unauthorized (check the Darwin API key)")
        if response.status == 429:
            retry_after = response.headers.get("Retry-After")
            suffix = f", retry after {retry_after}s" if retry_after else ""
            raise ProviderUnavailable(station, f"rate limited{suffix}")
        if response.status != 200:
            body = await response.text()
            logger.error(f"Darwin returned status {response.status} for {station}: {body[:200]}")
            raise ProviderUnavailable(station, f"API error (HTTP {response.status})")

        text = await response.text()
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ProviderUnavailable(station, f"malformed JSON: {e}") from e
        if not isinstance(data, dict):
            raise ProviderUnavailable(station, "unexpected response shape")
        return data
