"""Horizon content type definitions.

This module exports all data model types used by the package.
"""

from horizon_content.types.documents import DocumentRecord, Stability
from horizon_content.types.stats import (
    CacheEntry,
    Contributor,
    ErrorKind,
    Failed,
    FetchStatus,
    Loading,
    Ready,
    ReadyStale,
    Snapshot,
)

__all__ = [
    # Statistics
    "Contributor",
    "Snapshot",
    "CacheEntry",
    # Fetch status
    "ErrorKind",
    "FetchStatus",
    "Loading",
    "Ready",
    "ReadyStale",
    "Failed",
    # Documents
    "DocumentRecord",
    "Stability",
]
