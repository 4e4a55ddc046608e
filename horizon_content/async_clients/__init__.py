"""Async resource clients for the upstream repository API."""

from horizon_content.async_clients.contributors import AsyncContributorsClient
from horizon_content.async_clients.repos import AsyncReposClient
from horizon_content.async_clients.users import AsyncUsersClient

__all__ = [
    "AsyncReposClient",
    "AsyncContributorsClient",
    "AsyncUsersClient",
]
