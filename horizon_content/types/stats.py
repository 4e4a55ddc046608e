"""Community statistics data models."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Literal

from horizon_content.exceptions import HorizonError

PROFILE_ROOT = "https://github.com"


@dataclass(frozen=True)
class Contributor:
    """A single contributor shown on the community page."""

    identifier: str
    avatar_url: str
    profile_url: str
    contribution_magnitude: int = 0  # lines changed or commit count

    def __post_init__(self) -> None:
        if self.contribution_magnitude < 0:
            raise ValueError("contribution_magnitude must be >= 0")

    @classmethod
    def derived(cls, identifier: str, contribution_magnitude: int = 0) -> "Contributor":
        """Build a best-effort profile from the handle alone."""
        return cls(
            identifier=identifier,
            avatar_url=f"{PROFILE_ROOT}/{identifier}.png",
            profile_url=f"{PROFILE_ROOT}/{identifier}",
            contribution_magnitude=contribution_magnitude,
        )


@dataclass(frozen=True)
class Snapshot:
    """Repository statistics captured by one successful live fetch."""

    star_count: int
    fork_count: int
    contributors: tuple[Contributor, ...]
    total_commit_count: int
    captured_at: datetime

    def __post_init__(self) -> None:
        for name in ("star_count", "fork_count", "total_commit_count"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        identifiers = [c.identifier for c in self.contributors]
        if len(identifiers) != len(set(identifiers)):
            raise ValueError("contributor identifiers must be unique")

    @property
    def total_lines_changed(self) -> int:
        return sum(c.contribution_magnitude for c in self.contributors)


@dataclass(frozen=True)
class CacheEntry:
    """Persisted wrapper around the last good snapshot."""

    snapshot: Snapshot
    last_fetch_attempt_at: datetime

    def with_attempt(self, attempted_at: datetime) -> "CacheEntry":
        return replace(self, last_fetch_attempt_at=attempted_at)


class ErrorKind(str, Enum):
    """Conditions surfaced to the presentation layer."""

    RATE_LIMIT_EXCEEDED = "rate-limit-exceeded"
    UPSTREAM_UNAVAILABLE = "upstream-unavailable"
    PARTIAL_DATA = "partial-data"
    NO_DATA = "no-data"


@dataclass(frozen=True)
class Loading:
    """A fetch is in flight; attempt counts retries of the slow call."""

    attempt: int = 0
    max_attempts: int = 0
    state: Literal["loading"] = field(default="loading", init=False)


@dataclass(frozen=True)
class Ready:
    """Fresh data. ``notes`` lists tolerated enrichment problems."""

    snapshot: Snapshot
    notes: tuple[str, ...] = ()
    state: Literal["ready"] = field(default="ready", init=False)

    @property
    def partial(self) -> bool:
        return bool(self.notes)

    @property
    def kind(self) -> ErrorKind | None:
        return ErrorKind.PARTIAL_DATA if self.notes else None


@dataclass(frozen=True)
class ReadyStale:
    """Cached data served because a live fetch was refused or failed."""

    snapshot: Snapshot
    reason: str
    kind: ErrorKind
    error: HorizonError | None = None
    retry_after: float | None = None
    state: Literal["readyStale"] = field(default="readyStale", init=False)


@dataclass(frozen=True)
class Failed:
    """Nothing to show; the view offers a manual retry."""

    reason: str
    kind: ErrorKind
    error: HorizonError | None = None
    retry_after: float | None = None
    state: Literal["failed"] = field(default="failed", init=False)


FetchStatus = Loading | Ready | ReadyStale | Failed
