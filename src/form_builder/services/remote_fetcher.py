"""Remote fetcher for populateOptions rules.

Performs a parameterized HTTP request and returns parsed JSON. Failures
(transport errors, timeouts, non-2xx status, invalid JSON) are logged and
reported as None; nothing is raised to the caller.
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def build_query_params(query_params: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Stringify query parameters, dropping None values."""
    if not query_params:
        return {}
    return {key: _query_value(value) for key, value in query_params.items() if value is not None}


async def fetch_json(
    url: str,
    method: str = "GET",
    query_params: Optional[Dict[str, Any]] = None,
    body: Any = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> Optional[Any]:
    """Fetch JSON from a remote option source.

    Args:
        url: Endpoint URL
        method: HTTP method; a JSON body is only attached when not GET
        query_params: Query string parameters (sent for every method)
        body: Optional JSON-serializable request body
        client: Optional shared client; a short-lived one is created otherwise
        timeout: Request timeout in seconds for a self-created client

    Returns:
        Parsed JSON payload, or None on any failure
    """
    method = (method or "GET").upper()
    request_kwargs: Dict[str, Any] = {"params": build_query_params(query_params)}
    if method != "GET" and body is not None:
        request_kwargs["json"] = body
        request_kwargs["headers"] = {"Content-Type": "application/json"}

    try:
        if client is not None:
            response = await client.request(method, url, **request_kwargs)
        else:
            async with httpx.AsyncClient(timeout=timeout) as own_client:
                response = await own_client.request(method, url, **request_kwargs)
    except (httpx.HTTPError, httpx.InvalidURL, TypeError, ValueError) as exc:
        logger.warning("Error fetching %s %s: %s", method, url, exc)
        return None

    if not response.is_success:
        logger.warning(
            "Error fetching %s %s: HTTP %d %s",
            method, url, response.status_code, response.reason_phrase,
        )
        return None

    try:
        return response.json()
    except ValueError as exc:
        logger.warning("Error fetching %s %s: invalid JSON (%s)", method, url, exc)
        return None
