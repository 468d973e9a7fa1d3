"""HTTP client utilities."""

from typing import Any

import httpx

from miner_stats.helpers.constants import (
    DEFAULT_TIMEOUT,
    MAX_CONNECTIONS,
    MAX_KEEPALIVE_CONNECTIONS,
)


def create_http_client(
    timeout: float = DEFAULT_TIMEOUT,
    max_connections: int = MAX_CONNECTIONS,
    **kwargs: Any,
) -> httpx.AsyncClient:
    """Create a configured httpx AsyncClient.

    Args:
        timeout: Default timeout in seconds (default: DEFAULT_TIMEOUT)
        max_connections: Upper bound on open connections to the node
        **kwargs: Additional httpx.AsyncClient kwargs

    Returns:
        Configured AsyncClient instance

    Example:
        ```python
        from miner_stats.helpers.http import create_http_client

        async with create_http_client(timeout=10.0) as client:
            response = await client.post("http://127.0.0.1:8232", json={...})
        ```
    """
    limits = httpx.Limits(
        max_connections=max_connections,
        max_keepalive_connections=min(MAX_KEEPALIVE_CONNECTIONS, max_connections),
    )
    return httpx.AsyncClient(timeout=timeout, limits=limits, **kwargs)


__all__ = ["create_http_client"]
