"""Cooldown between live fetch attempts."""

from datetime import datetime, timedelta

from horizon_content.cache import CacheStore
from horizon_content.types.stats import CacheEntry


class RateGovernor:
    """
    Refuse a live fetch while the previous attempt is too recent.

    This is independent of staleness: a stale snapshot inside the cooldown
    is served as-is, and a fresh snapshot past the cooldown may still be
    refreshed in the background.
    """

    def __init__(self, cache: CacheStore) -> None:
        self.cache = cache

    @staticmethod
    def can_attempt(entry: CacheEntry | None, now: datetime, cooldown: timedelta) -> bool:
        if entry is None:
            return True
        return now - entry.last_fetch_attempt_at > cooldown

    def record_attempt(self, now: datetime) -> None:
        """Stamp the persisted entry with ``now``; the snapshot is left untouched."""
        entry = self.cache.load()
        if entry is None:
            return
        self.cache.save(entry.with_attempt(now))
