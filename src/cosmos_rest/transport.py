"""Single request round trip over httpx with error mapping."""

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from cosmos_rest.errors import ApiError, TransportError
from cosmos_rest.headers import ResponseHeaders

logger = logging.getLogger(__name__)


@dataclass
class Response:
    """Decoded service response."""

    status_code: int
    body: Any
    headers: ResponseHeaders


def _error_message(response: httpx.Response) -> str:
    """Pull the service message out of an error body, falling back to raw text."""
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict) and isinstance(payload.get("message"), str):
        return payload["message"]
    return response.text


async def send(
    http: httpx.AsyncClient,
    method: str,
    url: str,
    headers: dict[str, str],
    body: Any = None,
) -> Response:
    """Send one request and decode the JSON response.

    Args:
        http: Client used for the round trip
        method: HTTP method
        url: Absolute request URL
        headers: Complete request headers
        body: JSON-serializable request body, if any

    Returns:
        Response with body None for 204 or empty payloads

    Raises:
        TransportError: If the request fails below HTTP or the body is not JSON
        ApiError: If the service answers with a non-success status
    """
    content = json.dumps(body).encode("utf-8") if body is not None else None
    if content is not None and "Content-Type" not in headers:
        headers = {**headers, "Content-Type": "application/json"}

    logger.info(f"{method} {url}")
    try:
        response = await http.request(method, url, headers=headers, content=content)
    except httpx.HTTPError as e:
        logger.error(f"{method} {url} failed: {e}")
        raise TransportError(f"{method} {url} failed: {e}", source=e) from e

    response_headers = ResponseHeaders.from_headers(response.headers)
    logger.debug(
        f"{method} {url} -> {response.status_code} "
        f"(charge={response_headers.request_charge}, "
        f"continuation={response_headers.continuation_token!r})"
    )

    if response.status_code >= 400:
        message = _error_message(response)
        logger.error(f"Error response {response.status_code}: {message}")
        raise ApiError(message, response.status_code)

    if response.status_code == 204 or not response.content:
        return Response(response.status_code, None, response_headers)

    try:
        payload = response.json()
    except ValueError as e:
        raise TransportError(f"Malformed response body from {method} {url}", source=e) from e

    return Response(response.status_code, payload, response_headers)
