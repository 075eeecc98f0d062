"""Rate limiter for outgoing board requests.

One limiter per upstream API, shared by every client talking to it, keeps a minimum
delay between consecutive requests.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import ClassVar

logger = logging.getLogger(__name__)


class ApiRateLimiter:
    """Spaces requests to one API by at least min_delay_seconds.

    Async-safe: callers queue on an asyncio.Lock and sleep out the remaining delay.
    """

    _instances: ClassVar[dict[str, ApiRateLimiter]] = {}
    _registry_lock: ClassVar[asyncio.Lock | None] = None

    def __init__(self, api_name: str, min_delay_seconds: float = 1.0) -> None:
        self.api_name = api_name
        self.min_delay_seconds = min_delay_seconds
        self._last_request_time: float = 0.0
        self._lock = asyncio.Lock()

    @classmethod
    async def get_instance(cls, api_name: str, min_delay_seconds: float = 1.0) -> ApiRateLimiter:
        """Return the limiter registered for api_name, creating it on first use.

        The delay of an existing limiter is not changed by later calls.
        """
        if cls._registry_lock is None:
            cls._registry_lock = asyncio.Lock()

        async with cls._registry_lock:
            if api_name not in cls._instances:
                cls._instances[api_name] = cls(api_name, min_delay_seconds)
                logger.info(
                    f"Created rate limiter for {api_name} with {min_delay_seconds}s minimum delay"
                )
            return cls._instances[api_name]

    @classmethod
    def reset_registry(cls) -> None:
        """Forget all shared limiters (the registry lock is bound to one event loop)."""
        cls._instances.clear()
        cls._registry_lock = None

    async def acquire(self) -> None:
        """Wait until a request to this API is allowed."""
        async with self._lock:
            elapsed = time.monotonic() - self._last_request_time
            wait_time = self.min_delay_seconds - elapsed

            if wait_time > 0:
                logger.debug(f"{self.api_name}: waiting {wait_time:.2f}s before next request")
                await asyncio.sleep(wait_time)

            self._last_request_time = time.monotonic()

    async def __aenter__(self) -> ApiRateLimiter:
        await self.acquire()
        return self

    async def __aexit__(
        self, _exc_type: type | None, _exc_val: Exception | None, _exc_tb: object
    ) -> None:
        pass
