"""Logging of outgoing routing requests."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


def build_url_with_params(url: str, params: dict[str, Any] | None) -> str:
    """Build full URL with query parameters."""
    if not params:
        return url
    param_str = "&".join(f"{k}={v}" for k, v in sorted(params.items()))
    return f"{url}?{param_str}" if "?" not in url else f"{url}&{param_str}"


def log_api_request(method: str, url: str, params: dict[str, Any] | None = None) -> None:
    """Log an outgoing request at info level."""
    logger.info(f"API Request: {method} {build_url_with_params(url, params)}")
