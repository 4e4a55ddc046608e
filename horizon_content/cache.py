"""
Local persistence of the last good statistics snapshot.

The cache is one string-keyed JSON value. Any key-value store can back it;
``MemoryStore`` and ``FileStore`` are provided.
"""

import json
import os
import re
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from horizon_content.logging import get_logger
from horizon_content.types.stats import CacheEntry, Contributor, Snapshot

logger = get_logger("cache")

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")

# Raised while decoding a persisted value that is not a valid entry.
_CORRUPT_VALUE_ERRORS = (
    AttributeError,
    KeyError,
    TypeError,
    ValueError,
    OverflowError,
    OSError,
    RecursionError,
)


class KeyValueStore(ABC):
    """Abstract string-to-string store local to the running client."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value or None."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Replace the value stored under ``key``."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        pass


class MemoryStore(KeyValueStore):
    """Process-local store, mainly for tests and short-lived tools."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class FileStore(KeyValueStore):
    """One file per key under ``directory``; writes go through a rename."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get(self, key: str) -> str | None:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self._path(key)
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=self.directory, suffix=".tmp", delete=False
        ) as handle:
            handle.write(value)
            tmp_name = handle.name
        try:
            os.replace(tmp_name, target)
        except OSError:
            os.unlink(tmp_name)
            raise

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass


def _to_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def _from_millis(value: Any) -> datetime:
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)


def entry_to_dict(entry: CacheEntry) -> dict[str, Any]:
    """Serialize a CacheEntry to its persisted JSON shape."""
    snapshot = entry.snapshot
    captured = _to_millis(snapshot.captured_at)
    return {
        "timestamp": captured,
        "lastApiCall": _to_millis(entry.last_fetch_attempt_at),
        "data": {
            "stars": snapshot.star_count,
            "forks": snapshot.fork_count,
            "totalCommits": snapshot.total_commit_count,
            "contributors": [
                {
                    "login": c.identifier,
                    "avatar_url": c.avatar_url,
                    "html_url": c.profile_url,
                    "total_lines": c.contribution_magnitude,
                }
                for c in snapshot.contributors
            ],
            "lastUpdated": captured,
        },
    }


def _mapping(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise TypeError(f"{what} must be an object, got {type(value).__name__}")
    return value


def entry_from_dict(raw: Any) -> CacheEntry:
    """
    Rebuild a CacheEntry from its persisted JSON shape.

    Raises:
        KeyError, TypeError, ValueError: If the value is not a valid entry
    """
    raw = _mapping(raw, "cache entry")
    data = _mapping(raw["data"], "data")
    contributors = data.get("contributors", [])
    if not isinstance(contributors, list):
        raise TypeError("contributors must be a list")
    contributors = [_mapping(c, "contributor") for c in contributors]
    captured_ms = raw.get("timestamp", data.get("lastUpdated"))
    if captured_ms is None:
        raise KeyError("timestamp")
    captured_at = _from_millis(captured_ms)
    snapshot = Snapshot(
        star_count=int(data["stars"]),
        fork_count=int(data["forks"]),
        total_commit_count=int(data.get("totalCommits", 0)),
        contributors=tuple(
            Contributor(
                identifier=str(c["login"]),
                avatar_url=str(c["avatar_url"]),
                profile_url=str(c["html_url"]),
                contribution_magnitude=int(c.get("total_lines", 0)),
            )
            for c in contributors
        ),
        captured_at=captured_at,
    )
    last_call = raw.get("lastApiCall")
    return CacheEntry(
        snapshot=snapshot,
        last_fetch_attempt_at=_from_millis(last_call) if last_call is not None else captured_at,
    )


class CacheStore:
    """Persist the most recent CacheEntry under a fixed key."""

    def __init__(self, store: KeyValueStore, key: str) -> None:
        self.store = store
        self.key = key

    def load(self) -> CacheEntry | None:
        """Return the cached entry; unreadable or corrupt values count as absent."""
        try:
            raw = self.store.get(self.key)
        except (OSError, ValueError) as e:
            # ValueError covers UnicodeDecodeError from a file store
            logger.warning("Failed to read cached stats %r: %s", self.key, e)
            return None
        if raw is None:
            return None
        try:
            return entry_from_dict(json.loads(raw))
        except _CORRUPT_VALUE_ERRORS as e:
            logger.warning("Ignoring corrupt cached stats %r: %s", self.key, e)
            return None

    def save(self, entry: CacheEntry) -> None:
        """Replace the cached entry wholesale."""
        self.store.set(self.key, json.dumps(entry_to_dict(entry)))

    def clear(self) -> None:
        self.store.delete(self.key)

    @staticmethod
    def is_stale(entry: CacheEntry, now: datetime, max_age: timedelta) -> bool:
        return now - entry.snapshot.captured_at > max_age
