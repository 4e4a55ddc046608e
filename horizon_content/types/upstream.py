"""Records decoded from the upstream repository API."""

from dataclasses import dataclass


@dataclass
class RepositorySummary:
    """Headline numbers of one repository."""

    full_name: str
    star_count: int
    fork_count: int


@dataclass
class ContributorStat:
    """One entry of the contributor statistics endpoint."""

    identifier: str
    lines_changed: int  # additions + deletions over all weeks
    commits: int


@dataclass
class UserProfile:
    """Public profile detail of a contributor."""

    identifier: str
    avatar_url: str
    profile_url: str
