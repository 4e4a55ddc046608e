"""Async Users resource client."""

from typing import TYPE_CHECKING

from horizon_content.types.upstream import UserProfile

if TYPE_CHECKING:
    from horizon_content.async_transport import AsyncHTTPTransport


class AsyncUsersClient:
    """Async client for public user profiles."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        """
        Initialize the async users client.

        Args:
            transport: Async HTTP transport for making requests
        """
        self.transport = transport

    async def get(self, login: str) -> UserProfile:
        """
        Get a user's avatar and profile URL.

        Args:
            login: The user's handle

        Returns:
            UserProfile for the handle
        """
        data = await self.transport.get_object(f"/users/{login}")
        return UserProfile(
            identifier=data.get("login", login),
            avatar_url=data["avatar_url"],
            profile_url=data["html_url"],
        )
