"""Configuration for the community statistics loader."""

import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Literal

from horizon_content.exceptions import ConfigurationError
from horizon_content.retry import RetryConfig

MagnitudeSource = Literal["lines", "commits"]

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class StatsConfig:
    """
    Everything the orchestrator needs to know, passed in explicitly.

    ``max_age`` is the staleness window of a cached snapshot; ``cooldown`` is
    the minimum gap between two live fetch attempts. The two are independent.
    """

    owner: str = "Far-Beyond-Dev"
    repo: str = "Horizon"
    cache_key: str = "horizon-community-stats"
    max_age: timedelta = timedelta(hours=24)
    cooldown: timedelta = timedelta(seconds=60)
    count_commits: bool = True
    magnitude_source: MagnitudeSource = "lines"
    per_page: int = 100
    retry: RetryConfig = field(default_factory=RetryConfig)

    def __post_init__(self) -> None:
        if not self.owner or not self.repo:
            raise ConfigurationError("owner and repo must not be empty")
        if self.magnitude_source not in ("lines", "commits"):
            raise ConfigurationError(
                f"Invalid magnitude_source: {self.magnitude_source}. Must be 'lines' or 'commits'"
            )
        if self.max_age < timedelta(0) or self.cooldown < timedelta(0):
            raise ConfigurationError("max_age and cooldown must not be negative")
        if not 1 <= self.per_page <= 100:
            raise ConfigurationError("per_page must be between 1 and 100")

    @classmethod
    def from_env(cls, retry: RetryConfig | None = None) -> "StatsConfig":
        """
        Create a configuration from environment variables.

        Environment variables:
            HORIZON_GITHUB_OWNER: Repository owner (default: Far-Beyond-Dev)
            HORIZON_GITHUB_REPO: Repository name (default: Horizon)
            HORIZON_CACHE_KEY: Cache key (default: horizon-community-stats)
            HORIZON_CACHE_MAX_AGE: Staleness window in seconds (default: 86400)
            HORIZON_FETCH_COOLDOWN: Cooldown between live fetches in seconds (default: 60)
            HORIZON_COUNT_COMMITS: Sum commits across the owner's repositories (default: true)
            HORIZON_MAGNITUDE_SOURCE: "lines" or "commits" (default: lines)

        Raises:
            ConfigurationError: If a value cannot be parsed
        """
        defaults = cls()
        return cls(
            owner=os.environ.get("HORIZON_GITHUB_OWNER", defaults.owner),
            repo=os.environ.get("HORIZON_GITHUB_REPO", defaults.repo),
            cache_key=os.environ.get("HORIZON_CACHE_KEY", defaults.cache_key),
            max_age=_env_seconds("HORIZON_CACHE_MAX_AGE", defaults.max_age),
            cooldown=_env_seconds("HORIZON_FETCH_COOLDOWN", defaults.cooldown),
            count_commits=_env_bool("HORIZON_COUNT_COMMITS", defaults.count_commits),
            magnitude_source=os.environ.get(  # type: ignore[arg-type]
                "HORIZON_MAGNITUDE_SOURCE", defaults.magnitude_source
            ).lower(),
            retry=retry or RetryConfig(),
        )


def _env_seconds(name: str, default: timedelta) -> timedelta:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return timedelta(seconds=float(raw))
    except ValueError:
        raise ConfigurationError(f"{name} must be a number of seconds, got {raw!r}") from None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")
