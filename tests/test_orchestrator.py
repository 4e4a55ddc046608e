"""
Tests for the statistics orchestrator: cache policy, cooldown, retries,
enrichment and fallback statuses.

Feature: horizon-content
"""

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from horizon_content.cache import CacheStore
from horizon_content.config import StatsConfig
from horizon_content.exceptions import NoDataAvailableError, RateLimitedError
from horizon_content.governor import RateGovernor
from horizon_content.orchestrator import (
    NO_DATA_REASON,
    RATE_LIMITED_REASON,
    StatsOrchestrator,
    compose_snapshot,
)
from horizon_content.testing import (
    ManualClock,
    MockGitHubAPI,
    MockResponse,
    RecordingSleeper,
    create_mock_contributor,
    create_mock_entry,
    stats_payload,
)
from horizon_content.testing.fixtures import DEFAULT_NOW
from horizon_content.types.stats import ErrorKind, Failed, Ready, ReadyStale
from horizon_content.types.upstream import RepositorySummary

OWNER = "Far-Beyond-Dev"
REPO = "Horizon"
SUMMARY_PATH = f"/repos/{OWNER}/{REPO}"
STATS_PATH = f"/repos/{OWNER}/{REPO}/stats/contributors"


def fetch(
    api: MockGitHubAPI,
    cache: CacheStore,
    config: StatsConfig,
    clock: ManualClock,
    sleeper: RecordingSleeper,
    **kwargs,
):
    async def main():
        async with api.client() as client:
            orchestrator = StatsOrchestrator(client, cache, config, clock=clock, sleep=sleeper, **kwargs)
            return await orchestrator.get_stats()

    return asyncio.run(main())


class TestCachePolicy:
    def test_fresh_cache_inside_cooldown_makes_no_calls(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        """A fresh snapshot whose last attempt is recent is served with zero upstream calls."""
        entry = create_mock_entry(
            captured_at=DEFAULT_NOW - timedelta(hours=1),
            last_fetch_attempt_at=DEFAULT_NOW - timedelta(seconds=30),
        )
        memory_cache.save(entry)

        status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

        assert status == Ready(entry.snapshot)
        assert mock_api.call_count() == 0

    def test_stale_cache_inside_cooldown_is_served_stale(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        entry = create_mock_entry(
            captured_at=DEFAULT_NOW - timedelta(hours=25),
            last_fetch_attempt_at=DEFAULT_NOW - timedelta(seconds=30),
        )
        memory_cache.save(entry)

        status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

        assert isinstance(status, ReadyStale)
        assert status.snapshot == entry.snapshot
        assert status.reason == RATE_LIMITED_REASON
        assert status.kind is ErrorKind.RATE_LIMIT_EXCEEDED
        assert status.retry_after == 30.0
        assert mock_api.call_count() == 0

    def test_refused_without_cache_fails(self, mock_api, memory_cache, stats_config, clock, sleeper) -> None:
        class Closed(RateGovernor):
            @staticmethod
            def can_attempt(entry, now, cooldown) -> bool:
                return False

        status = fetch(
            mock_api, memory_cache, stats_config, clock, sleeper, governor=Closed(memory_cache)
        )

        assert isinstance(status, Failed)
        assert status.reason == NO_DATA_REASON
        assert status.kind is ErrorKind.NO_DATA
        assert mock_api.call_count() == 0

    def test_empty_cache_fetches_and_stores(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        mock_api.configure_repository(OWNER, REPO)

        status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

        assert isinstance(status, Ready)
        assert not status.partial
        assert status.snapshot.star_count == 120
        assert status.snapshot.fork_count == 30
        assert status.snapshot.total_commit_count == 500
        assert [c.identifier for c in status.snapshot.contributors] == ["alice", "bob"]
        assert status.snapshot.contributors[0].avatar_url == "https://avatars.githubusercontent.com/alice"
        stored = memory_cache.load()
        assert stored.snapshot == status.snapshot
        assert stored.last_fetch_attempt_at == DEFAULT_NOW

    def test_background_refresh_of_fresh_cache(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        """A fresh snapshot past the cooldown is returned at once and refreshed behind it."""
        entry = create_mock_entry(captured_at=DEFAULT_NOW - timedelta(hours=2))
        memory_cache.save(entry)
        mock_api.configure_repository(OWNER, REPO, stars=200)
        refreshed = []

        async def main():
            async with mock_api.client() as client:
                orchestrator = StatsOrchestrator(
                    client, memory_cache, stats_config, clock=clock, sleep=sleeper
                )
                first = await orchestrator.get_stats(on_refresh=refreshed.append)
                await orchestrator.wait_for_background()
                return first

        first = asyncio.run(main())

        assert first == Ready(entry.snapshot)
        assert len(refreshed) == 1
        assert refreshed[0].snapshot.star_count == 200
        assert memory_cache.load().snapshot.star_count == 200

    def test_failed_background_refresh_is_not_reported(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        entry = create_mock_entry(captured_at=DEFAULT_NOW - timedelta(hours=2))
        memory_cache.save(entry)
        mock_api.configure_json(SUMMARY_PATH, {"message": "Not Found"}, status_code=404)
        refreshed = []

        async def main():
            async with mock_api.client() as client:
                orchestrator = StatsOrchestrator(
                    client, memory_cache, stats_config, clock=clock, sleep=sleeper
                )
                await orchestrator.get_stats(on_refresh=refreshed.append)
                await orchestrator.wait_for_background()

        asyncio.run(main())

        assert refreshed == []
        stored = memory_cache.load()
        assert stored.snapshot == entry.snapshot
        assert stored.last_fetch_attempt_at == DEFAULT_NOW

    def test_needs_refresh(self, mock_api, memory_cache, stats_config, clock) -> None:
        orchestrator = StatsOrchestrator(mock_api.client(), memory_cache, stats_config, clock=clock)
        assert orchestrator.needs_refresh()

        memory_cache.save(create_mock_entry(captured_at=DEFAULT_NOW - timedelta(hours=2)))
        assert not orchestrator.needs_refresh()

        clock.advance(23 * 3600)
        assert orchestrator.needs_refresh()

        RateGovernor(memory_cache).record_attempt(clock())
        assert not orchestrator.needs_refresh()


class TestRetries:
    def test_not_ready_twice_then_success(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        mock_api.configure_repository(OWNER, REPO)
        mock_api.configure(
            STATS_PATH,
            MockResponse(status_code=202),
            MockResponse(status_code=202),
            MockResponse(data=stats_payload(("alice", 50), ("bob", 20))),
        )
        progress = []

        async def main():
            async with mock_api.client() as client:
                orchestrator = StatsOrchestrator(
                    client, memory_cache, stats_config, clock=clock, sleep=sleeper
                )
                return await orchestrator.get_stats(on_retry=lambda a, m: progress.append((a, m)))

        status = asyncio.run(main())

        assert isinstance(status, Ready)
        assert mock_api.call_count(STATS_PATH) == 3
        assert status.snapshot.star_count == 120
        assert status.snapshot.fork_count == 30
        assert len(status.snapshot.contributors) == 2
        assert sleeper.delays == [1.0, 2.0]
        assert progress == [(2, 5), (3, 5)]

    def test_exhausted_retries_fall_back_to_cache(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        entry = create_mock_entry(captured_at=DEFAULT_NOW - timedelta(hours=25))
        memory_cache.save(entry)
        mock_api.configure_json(SUMMARY_PATH, {"message": "Bad Gateway"}, status_code=502)

        status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

        assert isinstance(status, ReadyStale)
        assert status.snapshot == entry.snapshot
        assert status.kind is ErrorKind.UPSTREAM_UNAVAILABLE
        assert status.reason == "Failed to fetch new data. Using cached data from 2024-05-31 11:00 UTC."
        assert mock_api.call_count(SUMMARY_PATH) == 5
        assert sleeper.delays == [1.0, 2.0, 4.0, 8.0]
        assert memory_cache.load().last_fetch_attempt_at == DEFAULT_NOW

    def test_stale_cache_past_cooldown_is_refreshed(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        memory_cache.save(create_mock_entry(captured_at=DEFAULT_NOW - timedelta(hours=25)))
        mock_api.configure_repository(OWNER, REPO, stars=121)

        status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

        assert isinstance(status, Ready)
        assert status.snapshot.star_count == 121
        assert mock_api.call_count(SUMMARY_PATH) == 1
        assert memory_cache.load().snapshot.captured_at == DEFAULT_NOW

    def test_exhausted_retries_without_cache_fail(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        mock_api.configure(STATS_PATH, MockResponse(status_code=202))
        mock_api.configure_json(SUMMARY_PATH, {"stargazers_count": 1, "forks_count": 1})

        status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

        assert isinstance(status, Failed)
        assert status.kind is ErrorKind.NO_DATA
        assert status.reason == f"{NO_DATA_REASON} (failed to fetch new data)"
        assert mock_api.call_count(STATS_PATH) == 5
        assert memory_cache.load() is None

    def test_long_rate_limit_without_cache_fails(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        reset = int((DEFAULT_NOW + timedelta(hours=1)).timestamp())
        mock_api.configure_json(
            SUMMARY_PATH,
            {"message": "API rate limit exceeded"},
            status_code=403,
            **{"x-ratelimit-remaining": "0", "x-ratelimit-reset": str(reset)},
        )

        status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

        assert isinstance(status, Failed)
        assert status.kind is ErrorKind.NO_DATA
        assert status.reason == f"{NO_DATA_REASON} (rate limit exceeded)"
        assert isinstance(status.error, NoDataAvailableError)
        assert isinstance(status.error.__cause__, RateLimitedError)
        assert status.retry_after == 3600.0
        assert sleeper.delays == []

    def test_rate_limited_with_cache_reports_kind(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        memory_cache.save(create_mock_entry(captured_at=DEFAULT_NOW - timedelta(days=2)))
        mock_api.configure_json(SUMMARY_PATH, {}, status_code=429, **{"retry-after": "600"})

        status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

        assert isinstance(status, ReadyStale)
        assert status.kind is ErrorKind.RATE_LIMIT_EXCEEDED
        assert status.reason.startswith("Rate limit exceeded. Using cached data from")
        assert status.retry_after == 600.0

    def test_unavailable_without_cache_fails(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        mock_api.configure_json(SUMMARY_PATH, {"message": "Not Found"}, status_code=404)

        status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

        assert isinstance(status, Failed)
        assert status.reason.startswith(NO_DATA_REASON)
        assert status.kind is ErrorKind.NO_DATA
        assert mock_api.call_count(SUMMARY_PATH) == 1
        assert memory_cache.load() is None

    def test_persistently_empty_statistics_are_accepted(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        mock_api.configure_repository(OWNER, REPO)
        mock_api.configure_json(STATS_PATH, [])

        status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

        assert isinstance(status, Ready)
        assert status.snapshot.contributors == ()
        assert mock_api.call_count(STATS_PATH) == 3

    def test_summary_that_is_not_an_object_fails(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        mock_api.configure_repository(OWNER, REPO)
        mock_api.configure_json(SUMMARY_PATH, [])

        status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

        assert isinstance(status, Failed)
        assert status.kind is ErrorKind.NO_DATA
        assert mock_api.call_count(SUMMARY_PATH) == 5
        assert not mock_api.was_called(STATS_PATH)
        assert memory_cache.load() is None


class TestEnrichment:
    def test_failed_profiles_use_derived_urls(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        """Profile failures degrade single contributors, never the snapshot."""
        contributors = tuple((f"user{i}", 100 - i) for i in range(10))
        mock_api.configure_repository(OWNER, REPO, contributors=contributors)
        mock_api.configure_json("/users/user3", {"message": "Not Found"}, status_code=404)
        mock_api.configure_json("/users/user7", {"message": "Server Error"}, status_code=500)

        status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

        assert isinstance(status, Ready)
        assert status.partial
        assert status.kind is ErrorKind.PARTIAL_DATA
        assert len(status.notes) == 2
        assert len(status.snapshot.contributors) == 10
        by_id = {c.identifier: c for c in status.snapshot.contributors}
        assert by_id["user3"].avatar_url == "https://github.com/user3.png"
        assert by_id["user7"].profile_url == "https://github.com/user7"
        assert by_id["user0"].avatar_url == "https://avatars.githubusercontent.com/user0"
        assert mock_api.call_count("/users/user7") == 1

    def test_profile_that_is_not_an_object_uses_derived_urls(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        mock_api.configure_repository(OWNER, REPO)
        mock_api.configure_json("/users/bob", [])

        status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

        assert isinstance(status, Ready)
        assert status.partial
        by_id = {c.identifier: c for c in status.snapshot.contributors}
        assert by_id["bob"].avatar_url == "https://github.com/bob.png"
        assert by_id["alice"].avatar_url == "https://avatars.githubusercontent.com/alice"

    def test_duplicate_authors_are_looked_up_once(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        mock_api.configure_repository(OWNER, REPO, contributors=(("alice", 50), ("alice", 10), ("bob", 20)))

        status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

        assert [c.identifier for c in status.snapshot.contributors] == ["alice", "bob"]
        assert status.snapshot.contributors[0].contribution_magnitude == 50
        assert mock_api.call_count("/users/alice") == 1

    def test_commit_source_skips_profile_lookups(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        mock_api.configure_repository(OWNER, REPO)
        mock_api.configure_json(
            f"/repos/{OWNER}/{REPO}/contributors",
            [{"login": "bob", "contributions": 3}, {"login": "alice", "contributions": 9}],
        )
        config = replace(stats_config, magnitude_source="commits")

        status = fetch(mock_api, memory_cache, config, clock, sleeper)

        assert [(c.identifier, c.contribution_magnitude) for c in status.snapshot.contributors] == [
            ("alice", 9),
            ("bob", 3),
        ]
        assert not mock_api.was_called(STATS_PATH)
        assert not mock_api.was_called("/users/alice")


class TestCommitCount:
    def test_sums_every_repository(self, mock_api, memory_cache, stats_config, clock, sleeper) -> None:
        mock_api.configure_repository(OWNER, REPO, commits={REPO: 500, "Pulsar": 42})

        status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

        assert status.snapshot.total_commit_count == 542
        assert not status.partial

    def test_failed_probe_counts_zero(self, mock_api, memory_cache, stats_config, clock, sleeper) -> None:
        mock_api.configure_repository(OWNER, REPO, commits={REPO: 500, "Empty": 1})
        mock_api.configure_json(f"/repos/{OWNER}/Empty/commits", {"message": "Git Repository is empty."}, status_code=409)

        status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

        assert status.snapshot.total_commit_count == 500
        assert status.notes == ("commit count of Empty unavailable",)

    def test_listing_failure_counts_main_repository(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        mock_api.configure_repository(OWNER, REPO)
        mock_api.configure_json(f"/orgs/{OWNER}/repos", {"message": "Not Found"}, status_code=404)

        status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

        assert status.snapshot.total_commit_count == 500
        assert status.notes == ("repository listing unavailable",)

    def test_listing_with_html_body_counts_main_repository(
        self, mock_api, memory_cache, stats_config, clock, sleeper
    ) -> None:
        mock_api.configure_repository(OWNER, REPO)
        mock_api.configure(f"/orgs/{OWNER}/repos", MockResponse(body=b"<html>"))

        status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

        assert isinstance(status, Ready)
        assert status.snapshot.star_count == 120
        assert status.snapshot.total_commit_count == 500
        assert status.notes == ("repository listing unavailable",)

    def test_counting_can_be_disabled(self, mock_api, memory_cache, stats_config, clock, sleeper) -> None:
        mock_api.configure_repository(OWNER, REPO)
        config = replace(stats_config, count_commits=False)

        status = fetch(mock_api, memory_cache, config, clock, sleeper)

        assert status.snapshot.total_commit_count == 0
        assert not mock_api.was_called(f"/orgs/{OWNER}/repos")


class TestComposeSnapshot:
    def test_orders_by_descending_magnitude(self) -> None:
        contributors = [
            create_mock_contributor("c", 5),
            create_mock_contributor("a", 50),
            create_mock_contributor("d", 0),
            create_mock_contributor("b", 20),
        ]

        snapshot = compose_snapshot(RepositorySummary("o/r", 1, 2), contributors, 3, DEFAULT_NOW)

        assert [c.contribution_magnitude for c in snapshot.contributors] == [50, 20, 5, 0]
        assert (snapshot.star_count, snapshot.fork_count, snapshot.total_commit_count) == (1, 2, 3)

    def test_ties_keep_upstream_order_and_duplicates_drop(self) -> None:
        contributors = [
            create_mock_contributor("x", 7),
            create_mock_contributor("y", 7),
            create_mock_contributor("x", 99),
        ]

        snapshot = compose_snapshot(RepositorySummary("o/r", 0, 0), contributors, 0, DEFAULT_NOW)

        assert [c.identifier for c in snapshot.contributors] == ["x", "y"]


@pytest.mark.parametrize("hours", [0, 12, 23])
def test_fresh_snapshot_is_never_refetched_within_cooldown(
    hours: int, mock_api: MockGitHubAPI, memory_cache: CacheStore, stats_config: StatsConfig
) -> None:
    captured = DEFAULT_NOW - timedelta(hours=hours)
    memory_cache.save(create_mock_entry(captured_at=captured, last_fetch_attempt_at=DEFAULT_NOW))
    clock = ManualClock(DEFAULT_NOW + timedelta(seconds=10))

    status = fetch(mock_api, memory_cache, stats_config, clock, RecordingSleeper(clock))

    assert isinstance(status, Ready)
    assert mock_api.call_count() == 0


def test_capture_time_is_utc(mock_api, memory_cache, stats_config, clock, sleeper) -> None:
    mock_api.configure_repository(OWNER, REPO)

    status = fetch(mock_api, memory_cache, stats_config, clock, sleeper)

    assert status.snapshot.captured_at.tzinfo is not None
    assert status.snapshot.captured_at == datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
