"""Async Repositories resource client."""

from typing import TYPE_CHECKING

from horizon_content.async_transport import parse_last_page
from horizon_content.types.upstream import RepositorySummary

if TYPE_CHECKING:
    from horizon_content.async_transport import AsyncHTTPTransport


class AsyncReposClient:
    """Async client for repository-level reads."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        """
        Initialize the async repos client.

        Args:
            transport: Async HTTP transport for making requests
        """
        self.transport = transport

    async def get_summary(self, owner: str, repo: str) -> RepositorySummary:
        """
        Get star and fork counts of a repository.

        Args:
            owner: Repository owner (user or organization)
            repo: Repository name

        Returns:
            RepositorySummary with star_count and fork_count
        """
        data = await self.transport.get_object(f"/repos/{owner}/{repo}")
        return RepositorySummary(
            full_name=data.get("full_name", f"{owner}/{repo}"),
            star_count=int(data.get("stargazers_count", 0)),
            fork_count=int(data.get("forks_count", 0)),
        )

    async def list_org_repos(self, owner: str, per_page: int = 100, max_pages: int = 10) -> list[str]:
        """
        List repository names under an organization.

        Args:
            owner: Organization login
            per_page: Page size (the API caps it at 100)
            max_pages: Upper bound on pages fetched

        Returns:
            Repository names in API order
        """
        path = f"/orgs/{owner}/repos"
        names: list[str] = []
        for page in range(1, max_pages + 1):
            response = await self.transport.get(
                path,
                params={"per_page": per_page, "page": page},
            )
            items = self.transport.decode_array(path, response)
            names.extend(str(item["name"]) for item in items if item.get("name"))
            last_page = parse_last_page(response.headers.get("link"))
            if last_page is None or page >= last_page:
                break
        return names

    async def count_commits(self, owner: str, repo: str) -> int:
        """
        Count commits on the default branch without downloading them.

        Requests one commit per page and reads the total from the page number
        of the ``rel="last"`` pagination link.

        Args:
            owner: Repository owner
            repo: Repository name

        Returns:
            Total commit count
        """
        path = f"/repos/{owner}/{repo}/commits"
        response = await self.transport.get(path, params={"per_page": 1})
        last_page = parse_last_page(response.headers.get("link"))
        if last_page is not None:
            return last_page
        return len(self.transport.decode_array(path, response))
