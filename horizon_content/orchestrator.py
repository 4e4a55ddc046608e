"""
Community statistics orchestration.

Serves the cached snapshot when it is fresh, refreshes it in the background
when the cooldown allows, and otherwise runs the live fetch sequence:
repository summary, contributor statistics, per-contributor profile
enrichment and an optional commit count across the owner's repositories.
Every outcome is returned as a FetchStatus; nothing is raised to the view.
"""

import asyncio
from collections.abc import Callable, Iterable
from datetime import datetime

from horizon_content.async_client import AsyncGitHubClient
from horizon_content.cache import CacheStore
from horizon_content.config import StatsConfig
from horizon_content.exceptions import (
    EnrichmentError,
    HorizonError,
    NoDataAvailableError,
    RateLimitedError,
    RetryExhaustedError,
    TransientUpstreamError,
)
from horizon_content.governor import RateGovernor
from horizon_content.logging import get_logger
from horizon_content.retry import Clock, RetryController, RetryListener, Sleeper, utcnow
from horizon_content.types.stats import (
    CacheEntry,
    Contributor,
    ErrorKind,
    Failed,
    FetchStatus,
    Ready,
    ReadyStale,
    Snapshot,
)
from horizon_content.types.upstream import ContributorStat, RepositorySummary

logger = get_logger()

RATE_LIMITED_REASON = "rate limited, showing cached data"
NO_DATA_REASON = "no data available, try again later"

StatusListener = Callable[[FetchStatus], None]

# Upstream payloads that do not match the expected shape.
_DECODE_ERRORS = (AttributeError, KeyError, TypeError, ValueError)


def compose_snapshot(
    summary: RepositorySummary,
    contributors: Iterable[Contributor],
    total_commit_count: int,
    captured_at: datetime,
) -> Snapshot:
    """
    Build a Snapshot, dropping repeated handles and ordering contributors by
    descending magnitude. Ties keep the upstream order.
    """
    seen: set[str] = set()
    unique: list[Contributor] = []
    for contributor in contributors:
        if contributor.identifier in seen:
            continue
        seen.add(contributor.identifier)
        unique.append(contributor)

    return Snapshot(
        star_count=summary.star_count,
        fork_count=summary.fork_count,
        contributors=tuple(sorted(unique, key=lambda c: c.contribution_magnitude, reverse=True)),
        total_commit_count=total_commit_count,
        captured_at=captured_at,
    )


class StatsOrchestrator:
    """
    Produce the current community statistics.

    Example:
        ```python
        store = CacheStore(FileStore(".cache"), config.cache_key)
        async with AsyncGitHubClient.from_env() as client:
            orchestrator = StatsOrchestrator(client, store, config)
            status = await orchestrator.get_stats()
        ```
    """

    def __init__(
        self,
        client: AsyncGitHubClient,
        cache: CacheStore,
        config: StatsConfig | None = None,
        governor: RateGovernor | None = None,
        retry: RetryController | None = None,
        clock: Clock = utcnow,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.client = client
        self.cache = cache
        self.config = config or StatsConfig()
        self.governor = governor or RateGovernor(cache)
        self.retry = retry or RetryController(self.config.retry, sleep=sleep, clock=clock)
        self._clock = clock
        self._background: set[asyncio.Task[None]] = set()

    async def get_stats(
        self,
        on_refresh: StatusListener | None = None,
        on_retry: RetryListener | None = None,
    ) -> FetchStatus:
        """
        Return the best available statistics.

        Args:
            on_refresh: Receives the Ready status of a background refresh that
                was started because the cached snapshot was fresh
            on_retry: Receives (attempt, max_attempts) while the contributor
                statistics call is being retried

        Returns:
            Ready, ReadyStale or Failed
        """
        config = self.config
        entry = self.cache.load()
        now = self._clock()
        allowed = self.governor.can_attempt(entry, now, config.cooldown)

        if entry is not None and not self.cache.is_stale(entry, now, config.max_age):
            if allowed:
                self._start_background_refresh(on_refresh)
            return Ready(entry.snapshot)

        if not allowed:
            if entry is not None:
                wait = config.cooldown - (now - entry.last_fetch_attempt_at)
                return ReadyStale(
                    entry.snapshot,
                    RATE_LIMITED_REASON,
                    ErrorKind.RATE_LIMIT_EXCEEDED,
                    retry_after=wait.total_seconds(),
                )
            return Failed(NO_DATA_REASON, ErrorKind.NO_DATA, NoDataAvailableError())

        return await self._refresh(entry, on_retry)

    async def refresh(self, on_retry: RetryListener | None = None) -> FetchStatus:
        """Run the live fetch sequence now, ignoring staleness and cooldown."""
        return await self._refresh(self.cache.load(), on_retry)

    def needs_refresh(self) -> bool:
        """True when nothing is cached, or the cache is stale and the cooldown has passed."""
        entry = self.cache.load()
        if entry is None:
            return True
        now = self._clock()
        return self.cache.is_stale(entry, now, self.config.max_age) and self.governor.can_attempt(
            entry, now, self.config.cooldown
        )

    async def wait_for_background(self) -> None:
        """Wait until every background refresh has settled."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def aclose(self) -> None:
        """Abandon in-flight background refreshes."""
        for task in list(self._background):
            task.cancel()
        await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _refresh(self, previous: CacheEntry | None, on_retry: RetryListener | None) -> FetchStatus:
        started = self._clock()
        self.governor.record_attempt(started)
        try:
            snapshot, notes = await self._fetch_snapshot(on_retry)
        except HorizonError as e:
            return self._fallback(previous, e)
        except _DECODE_ERRORS as e:
            error = TransientUpstreamError("INVALID_RESPONSE", f"unexpected upstream payload: {e!r}")
            return self._fallback(previous, error)

        self.cache.save(CacheEntry(snapshot=snapshot, last_fetch_attempt_at=started))
        if notes:
            logger.warning("Stored partial stats snapshot: %s", "; ".join(notes))
        return Ready(snapshot, tuple(notes))

    async def _fetch_snapshot(self, on_retry: RetryListener | None) -> tuple[Snapshot, list[str]]:
        config = self.config
        client = self.client
        owner, repo = config.owner, config.repo
        notes: list[str] = []

        summary = await self.retry.run(
            lambda: client.repos.get_summary(owner, repo),
            name="repository summary",
        )

        if config.magnitude_source == "commits":
            contributors = await self.retry.run(
                lambda: client.contributors.list(owner, repo, config.per_page),
                name="contributors",
                on_retry=on_retry,
            )
        else:
            stats = await self.retry.run(
                lambda: client.contributors.get_stats(owner, repo),
                name="contributor statistics",
                on_retry=on_retry,
            )
            contributors = await self._enrich(stats, notes)

        total_commits = await self._count_commits(notes) if config.count_commits else 0

        return compose_snapshot(summary, contributors, total_commits, self._clock()), notes

    async def _enrich(self, stats: list[ContributorStat], notes: list[str]) -> list[Contributor]:
        unique: dict[str, ContributorStat] = {}
        for stat in stats:
            unique.setdefault(stat.identifier, stat)

        async def fetch_profile(stat: ContributorStat) -> Contributor:
            try:
                profile = await self.client.users.get(stat.identifier)
            except (HorizonError, *_DECODE_ERRORS) as e:
                failure = EnrichmentError(stat.identifier, f"profile of {stat.identifier} unavailable: {e}")
                logger.warning("Using derived profile: %s", failure.message)
                notes.append(failure.message)
                return Contributor.derived(stat.identifier, stat.lines_changed)
            return Contributor(
                identifier=stat.identifier,
                avatar_url=profile.avatar_url,
                profile_url=profile.profile_url,
                contribution_magnitude=stat.lines_changed,
            )

        return list(await asyncio.gather(*(fetch_profile(s) for s in unique.values())))

    async def _count_commits(self, notes: list[str]) -> int:
        config = self.config
        repos_client = self.client.repos
        try:
            names = await self.retry.run(
                lambda: repos_client.list_org_repos(config.owner, config.per_page),
                name="organization repositories",
            )
        except (HorizonError, *_DECODE_ERRORS) as e:
            logger.warning("Counting commits of %s only: %s", config.repo, e)
            notes.append("repository listing unavailable")
            names = [config.repo]

        async def probe(name: str) -> int:
            try:
                return await repos_client.count_commits(config.owner, name)
            except (HorizonError, *_DECODE_ERRORS) as e:
                logger.warning("Failed to count commits for %s: %s", name, e)
                notes.append(f"commit count of {name} unavailable")
                return 0

        return sum(await asyncio.gather(*(probe(name) for name in names)))

    def _fallback(self, previous: CacheEntry | None, error: HorizonError) -> FetchStatus:
        cause = error.last_error if isinstance(error, RetryExhaustedError) else error
        retry_after: float | None = None

        if isinstance(cause, RateLimitedError):
            kind = ErrorKind.RATE_LIMIT_EXCEEDED
            headline = "Rate limit exceeded"
            if cause.reset_at is not None:
                retry_after = max(0.0, (cause.reset_at - self._clock()).total_seconds())
            elif cause.retry_after is not None:
                retry_after = cause.retry_after
        else:
            kind = ErrorKind.UPSTREAM_UNAVAILABLE
            headline = "Failed to fetch new data"

        if previous is not None:
            captured = previous.snapshot.captured_at.strftime("%Y-%m-%d %H:%M UTC")
            logger.warning("%s, serving cached stats from %s: %s", headline, captured, error)
            return ReadyStale(
                previous.snapshot,
                f"{headline}. Using cached data from {captured}.",
                kind,
                error=error,
                retry_after=retry_after,
            )

        logger.error("%s and nothing is cached: %s", headline, error)
        no_data = NoDataAvailableError(f"{NO_DATA_REASON} ({headline.lower()})")
        no_data.__cause__ = error
        return Failed(no_data.message, ErrorKind.NO_DATA, error=no_data, retry_after=retry_after)

    def _start_background_refresh(self, on_refresh: StatusListener | None) -> None:
        task = asyncio.create_task(self._background_refresh(on_refresh))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _background_refresh(self, on_refresh: StatusListener | None) -> None:
        status = await self.refresh()
        if isinstance(status, Ready) and on_refresh is not None:
            on_refresh(status)
        elif not isinstance(status, Ready):
            logger.info("Background refresh kept the cached stats: %s", getattr(status, "reason", ""))
