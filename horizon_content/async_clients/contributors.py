"""Async Contributors resource client."""

from typing import TYPE_CHECKING

from horizon_content.exceptions import EmptyResultError
from horizon_content.types.stats import Contributor
from horizon_content.types.upstream import ContributorStat

if TYPE_CHECKING:
    from horizon_content.async_transport import AsyncHTTPTransport


class AsyncContributorsClient:
    """Async client for contributor listings and statistics."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        """
        Initialize the async contributors client.

        Args:
            transport: Async HTTP transport for making requests
        """
        self.transport = transport

    async def get_stats(self, owner: str, repo: str) -> list[ContributorStat]:
        """
        Get per-contributor line statistics.

        The upstream computes these lazily: the first request usually answers
        202 and an empty body until the aggregation is done.

        Args:
            owner: Repository owner
            repo: Repository name

        Returns:
            One ContributorStat per author, in API order

        Raises:
            NotReadyError: While the upstream is still computing
            EmptyResultError: When the upstream answered with an empty list
            TransientUpstreamError: When the body is not a JSON array
        """
        data = await self.transport.get_array(f"/repos/{owner}/{repo}/stats/contributors")
        if not data:
            raise EmptyResultError(
                "EMPTY_RESULT",
                f"contributor statistics for {owner}/{repo} are empty",
                result=[],
            )

        stats: list[ContributorStat] = []
        for entry in data:
            author = entry.get("author")
            login = author.get("login") if isinstance(author, dict) else None
            if not login:
                continue
            weeks = entry.get("weeks")
            if not isinstance(weeks, list):
                weeks = []
            stats.append(
                ContributorStat(
                    identifier=login,
                    lines_changed=sum(
                        w.get("a", 0) + w.get("d", 0) for w in weeks if isinstance(w, dict)
                    ),
                    commits=int(entry.get("total", 0)),
                )
            )
        return stats

    async def list(self, owner: str, repo: str, per_page: int = 100) -> list[Contributor]:
        """
        List contributors with their commit counts.

        Args:
            owner: Repository owner
            repo: Repository name
            per_page: Page size

        Returns:
            Contributors whose magnitude is their commit count
        """
        data = await self.transport.get_array(
            f"/repos/{owner}/{repo}/contributors", params={"per_page": per_page}
        )
        return [
            Contributor(
                identifier=entry["login"],
                avatar_url=entry.get("avatar_url") or Contributor.derived(entry["login"]).avatar_url,
                profile_url=entry.get("html_url") or Contributor.derived(entry["login"]).profile_url,
                contribution_magnitude=int(entry.get("contributions", 0)),
            )
            for entry in data
            if entry.get("login")
        ]
