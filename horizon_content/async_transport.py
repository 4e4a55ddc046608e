"""
Async HTTP Transport for the upstream repository API.

Handles async HTTP communication, maps status codes onto the package's
error taxonomy and extracts pagination metadata, using httpx async client.
Retrying is left to the caller (see horizon_content.retry).
"""

import re
import time
from datetime import datetime, timezone
from typing import Any

import httpx

from horizon_content.exceptions import (
    HorizonError,
    NotReadyError,
    RateLimitedError,
    TransientUpstreamError,
    UpstreamUnavailableError,
)
from horizon_content.logging import log_http_request, log_http_response

_LAST_PAGE = re.compile(r"[?&]page=(\d+)[^>]*>;\s*rel=\"last\"")


def parse_last_page(link_header: str | None) -> int | None:
    """
    Return the page number of the ``rel="last"`` link, if any.

    Args:
        link_header: Value of the Link response header

    Returns:
        The last page number, or None when the header has no last link
    """
    if not link_header:
        return None
    match = _LAST_PAGE.search(link_header)
    return int(match.group(1)) if match else None


class AsyncHTTPTransport:
    """
    Async HTTP transport layer for read-only API calls.

    Handles:
    - Authentication and content negotiation headers
    - Rate-limit detection (403/429 with x-ratelimit-* or Retry-After headers)
    - "Accepted, still computing" (202) detection
    - Error response parsing into typed exceptions
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize async HTTP transport.

        Args:
            base_url: Base URL for API requests (e.g., "https://api.github.com")
            token: Optional personal access token
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests pass an httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        headers = {"Accept": "application/vnd.github.v3+json"}
        if token:
            headers["Authorization"] = f"token {token}"

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHTTPTransport":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def get(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        """
        Issue a GET request and raise for anything that is not a usable answer.

        Args:
            path: API path (e.g., "/repos/owner/name")
            params: Query parameters

        Returns:
            The successful httpx.Response

        Raises:
            NotReadyError: On 202
            RateLimitedError: When the rate limit is exhausted
            TransientUpstreamError: On network errors and 5xx
            UpstreamUnavailableError: On any other error status
        """
        log_http_request("GET", f"{self.base_url}{path}", dict(self._client.headers), params)
        started = time.perf_counter()
        try:
            response = await self._client.get(path, params=params)
        except httpx.RequestError as e:
            raise TransientUpstreamError("CONNECTION_ERROR", f"GET {path}: {e}") from e

        log_http_response(
            response.status_code,
            str(response.url),
            response.headers.get("x-ratelimit-remaining"),
            (time.perf_counter() - started) * 1000,
        )

        if response.status_code == 202:
            raise NotReadyError(
                "NOT_READY",
                f"GET {path}: accepted, statistics are still being computed",
                response.headers.get("x-github-request-id"),
            )
        if response.status_code >= 400:
            raise self._parse_error_response(path, response)
        return response

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``path`` and decode the JSON body."""
        return self.decode_json(path, await self.get(path, params))

    async def get_object(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """GET ``path`` and require a JSON object body."""
        return self.decode_object(path, await self.get(path, params))

    async def get_array(self, path: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """GET ``path`` and require a JSON array body (an empty body counts as ``[]``)."""
        return self.decode_array(path, await self.get(path, params))

    def decode_json(self, path: str, response: httpx.Response) -> Any:
        """
        Decode a successful response body.

        Returns:
            The decoded JSON, or None for 204 and empty bodies

        Raises:
            TransientUpstreamError: If the body is not valid JSON
        """
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransientUpstreamError("INVALID_JSON", f"GET {path}: {e}") from e

    def decode_object(self, path: str, response: httpx.Response) -> dict[str, Any]:
        data = self.decode_json(path, response)
        if not isinstance(data, dict):
            raise TransientUpstreamError(
                "INVALID_RESPONSE",
                f"GET {path}: expected a JSON object, got {type(data).__name__}",
            )
        return data

    def decode_array(self, path: str, response: httpx.Response) -> list[dict[str, Any]]:
        """Decode a JSON array, dropping entries that are not objects."""
        data = self.decode_json(path, response)
        if data is None:
            return []
        if not isinstance(data, list):
            raise TransientUpstreamError(
                "INVALID_RESPONSE",
                f"GET {path}: expected a JSON array, got {type(data).__name__}",
            )
        return [item for item in data if isinstance(item, dict)]

    def _parse_error_response(self, path: str, response: httpx.Response) -> HorizonError:
        """
        Parse an error response into a typed exception.

        Args:
            path: Requested path, for the error message
            response: HTTP response with error status

        Returns:
            Appropriate HorizonError subclass
        """
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        status_code = response.status_code
        message = f"GET {path}: HTTP {status_code}"
        if data.get("message"):
            message = f"{message} {data['message']}"
        request_id = response.headers.get("x-github-request-id")

        remaining = response.headers.get("x-ratelimit-remaining")
        retry_after = response.headers.get("retry-after")
        rate_limited = status_code == 429 or (
            status_code == 403
            and (remaining == "0" or retry_after is not None or "rate limit" in message.lower())
        )

        if rate_limited:
            return RateLimitedError(
                "RATE_LIMITED",
                message,
                reset_at=_parse_reset(response.headers.get("x-ratelimit-reset")),
                retry_after=_parse_seconds(retry_after),
                request_id=request_id,
            )
        if status_code >= 500:
            return TransientUpstreamError("SERVER_ERROR", message, request_id)
        return UpstreamUnavailableError("UPSTREAM_UNAVAILABLE", message, status_code, request_id)


def _parse_reset(value: str | None) -> datetime | None:
    seconds = _parse_seconds(value)
    if seconds is None:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def _parse_seconds(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None
