"""
Pytest fixtures for horizon_content testing.

Provides a mock upstream, a manual clock and snapshot factories.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Generator

import pytest

from horizon_content.cache import CacheStore, MemoryStore
from horizon_content.config import StatsConfig
from horizon_content.retry import RetryConfig
from horizon_content.testing.mock import (  # noqa: F401
    ManualClock,
    MockGitHubAPI,
    RecordingSleeper,
    stats_payload,
    user_payload,
)
from horizon_content.types.stats import CacheEntry, Contributor, Snapshot

DEFAULT_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


# ============================================================================
# Factories
# ============================================================================


def create_mock_contributor(
    identifier: str = "octocat",
    contribution_magnitude: int = 0,
) -> Contributor:
    return Contributor(
        identifier=identifier,
        avatar_url=f"https://avatars.example.test/{identifier}",
        profile_url=f"https://github.com/{identifier}",
        contribution_magnitude=contribution_magnitude,
    )


def create_mock_snapshot(
    star_count: int = 120,
    fork_count: int = 30,
    contributors: tuple[Contributor, ...] | None = None,
    total_commit_count: int = 500,
    captured_at: datetime = DEFAULT_NOW,
) -> Snapshot:
    if contributors is None:
        contributors = (
            create_mock_contributor("alice", 50),
            create_mock_contributor("bob", 20),
        )
    return Snapshot(
        star_count=star_count,
        fork_count=fork_count,
        contributors=contributors,
        total_commit_count=total_commit_count,
        captured_at=captured_at,
    )


def create_mock_entry(
    captured_at: datetime = DEFAULT_NOW,
    last_fetch_attempt_at: datetime | None = None,
    **snapshot_fields: Any,
) -> CacheEntry:
    return CacheEntry(
        snapshot=create_mock_snapshot(captured_at=captured_at, **snapshot_fields),
        last_fetch_attempt_at=last_fetch_attempt_at or captured_at,
    )


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def mock_api() -> Generator[MockGitHubAPI, None, None]:
    """
    Provide a MockGitHubAPI.

    Example:
        ```python
        def test_summary(mock_api):
            mock_api.configure_json("/repos/o/r", {"stargazers_count": 3, "forks_count": 1})
        ```
    """
    api = MockGitHubAPI()
    yield api
    api.reset()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(DEFAULT_NOW)


@pytest.fixture
def sleeper(clock: ManualClock) -> RecordingSleeper:
    return RecordingSleeper(clock)


@pytest.fixture
def memory_cache() -> CacheStore:
    return CacheStore(MemoryStore(), "horizon-community-stats")


@pytest.fixture
def stats_config() -> StatsConfig:
    """Small delays and an owner/repo pair that the mock routes use."""
    return StatsConfig(
        owner="Far-Beyond-Dev",
        repo="Horizon",
        max_age=timedelta(hours=24),
        cooldown=timedelta(seconds=60),
        retry=RetryConfig(max_attempts=5, initial_delay=1.0, max_delay=8.0),
    )


@pytest.fixture
def sample_snapshot() -> Snapshot:
    return create_mock_snapshot()
