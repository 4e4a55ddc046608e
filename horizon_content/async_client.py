"""
Async client for the upstream repository-metadata API.

Aggregates the resource clients over one shared transport.
"""

import os
from typing import Any

import httpx

from horizon_content.async_clients import (
    AsyncContributorsClient,
    AsyncReposClient,
    AsyncUsersClient,
)
from horizon_content.async_transport import AsyncHTTPTransport


class AsyncGitHubClient:
    """
    Async client for the repository-metadata API.

    Example:
        ```python
        import asyncio
        from horizon_content import AsyncGitHubClient

        async def main():
            async with AsyncGitHubClient.from_env() as client:
                summary = await client.repos.get_summary("Far-Beyond-Dev", "Horizon")
                print(summary.star_count)

        asyncio.run(main())
        ```
    """

    DEFAULT_BASE_URL = "https://api.github.com"
    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        token: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the async client.

        Args:
            token: Optional access token; raises the upstream rate limit
            base_url: Base URL for API requests (default: https://api.github.com)
            timeout: Request timeout in seconds (default: 30.0)
            transport: Optional httpx transport, mainly for tests
        """
        self.base_url = base_url
        self.timeout = timeout

        self._transport = AsyncHTTPTransport(
            base_url=base_url,
            token=token,
            timeout=timeout,
            transport=transport,
        )

        self.repos = AsyncReposClient(self._transport)
        self.contributors = AsyncContributorsClient(self._transport)
        self.users = AsyncUsersClient(self._transport)

    @classmethod
    def from_env(
        cls,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "AsyncGitHubClient":
        """
        Create an async client from environment variables.

        Environment variables:
            GITHUB_TOKEN: Access token (optional)
            GITHUB_API_URL: Base URL for API (optional, default: https://api.github.com)

        Args:
            timeout: Request timeout in seconds (default: 30.0)
            transport: Optional httpx transport

        Returns:
            Configured AsyncGitHubClient instance
        """
        return cls(
            token=os.environ.get("GITHUB_TOKEN") or None,
            base_url=os.environ.get("GITHUB_API_URL", cls.DEFAULT_BASE_URL),
            timeout=timeout,
            transport=transport,
        )

    @property
    def transport(self) -> AsyncHTTPTransport:
        """Get the underlying async HTTP transport (for advanced use cases)."""
        return self._transport

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._transport.close()

    async def __aenter__(self) -> "AsyncGitHubClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit - closes the client."""
        await self.close()
