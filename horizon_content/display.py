"""Formatting helpers for the community statistics tiles."""

from dataclasses import dataclass

from horizon_content.types.stats import Loading, Snapshot

COMPACT_THRESHOLD = 10_000
_UNITS = ((1_000, "K"), (1_000_000, "M"), (1_000_000_000, "B"), (1_000_000_000_000, "T"))


@dataclass(frozen=True)
class StatTile:
    label: str
    value: str


def format_number(value: int) -> str:
    """
    Format a count for display.

    Below 10,000 the number is grouped ("9,876"); from there on it is
    compacted with at most one fractional digit ("12.3K", "1.2M").
    """
    if abs(value) < COMPACT_THRESHOLD:
        return f"{value:,}"

    sign = "-" if value < 0 else ""
    for divisor, suffix in _UNITS:
        scaled = round(abs(value) / divisor, 1)
        if scaled < 1000:
            break
    text = f"{scaled:.1f}".rstrip("0").rstrip(".")
    return f"{sign}{text}{suffix}"


def stat_tiles(snapshot: Snapshot) -> list[StatTile]:
    """The five headline tiles of the community page."""
    return [
        StatTile("GitHub Stars", format_number(snapshot.star_count)),
        StatTile("Forks", format_number(snapshot.fork_count)),
        StatTile("Total Commits", format_number(snapshot.total_commit_count)),
        StatTile("Contributors", format_number(len(snapshot.contributors))),
        StatTile("Lines Changed", format_number(snapshot.total_lines_changed)),
    ]


def progress_text(status: Loading) -> str:
    if status.attempt <= 0:
        return "Loading data..."
    return f"Fetching contributor data... Attempt {status.attempt} of {status.max_attempts}"
