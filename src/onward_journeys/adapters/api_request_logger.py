"""Logging of outgoing board requests, enabled by ONWARD_LOG_REQUESTS=true."""

import json
import logging
import os
from typing import Any

logger = logging.getLogger(__name__)

LOG_REQUESTS_ENV = "ONWARD_LOG_REQUESTS"

_SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "x-apikey", "x-api-key"})
_REDACTED = "***REDACTED***"


def should_log_requests() -> bool:
    return os.getenv(LOG_REQUESTS_ENV, "").lower() == "true"


def _build_url_with_params(url: str, params: dict[str, Any] | None) -> str:
    if not params:
        return url
    param_str = "&".join(f"{k}={v}" for k, v in sorted(params.items()))
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{param_str}"


def redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Copy of headers with credentials masked."""
    return {k: _REDACTED if k.lower() in _SENSITIVE_HEADERS else v for k, v in headers.items()}


def log_api_request(
    method: str,
    url: str,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> None:
    """Log an outgoing request if request logging is enabled.

    Args:
        method: HTTP method.
        url: Request URL without query string.
        params: Query parameters.
        headers: Request headers; API keys are never written to the log.
    """
    if not should_log_requests():
        return

    log_parts = [f"{method} {_build_url_with_params(url, params)}"]
    if headers:
        log_parts.append(f"Headers: {json.dumps(redact_headers(headers), indent=2)}")

    logger.info("API Request:\n" + "\n".join(log_parts))
