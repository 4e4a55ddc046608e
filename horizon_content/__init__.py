"""Horizon content - community statistics and documentation loaders for the Horizon website."""

from horizon_content.async_client import AsyncGitHubClient
from horizon_content.cache import CacheStore, FileStore, KeyValueStore, MemoryStore
from horizon_content.config import StatsConfig
from horizon_content.documents import DocumentLibrary, filter_documents, parse_document
from horizon_content.exceptions import (
    ConfigurationError,
    EmptyResultError,
    EnrichmentError,
    HorizonError,
    MalformedDocumentError,
    NoDataAvailableError,
    NotReadyError,
    RateLimitedError,
    RetryExhaustedError,
    TransientUpstreamError,
    UpstreamUnavailableError,
)
from horizon_content.governor import RateGovernor
from horizon_content.logging import configure_logging, get_logger
from horizon_content.orchestrator import StatsOrchestrator
from horizon_content.retry import RetryConfig, RetryController
from horizon_content.types import (
    CacheEntry,
    Contributor,
    DocumentRecord,
    ErrorKind,
    Failed,
    FetchStatus,
    Loading,
    Ready,
    ReadyStale,
    Snapshot,
    Stability,
)
from horizon_content.view import StatsView

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Statistics
    "StatsOrchestrator",
    "StatsView",
    "StatsConfig",
    "AsyncGitHubClient",
    "RateGovernor",
    # Cache
    "CacheStore",
    "KeyValueStore",
    "MemoryStore",
    "FileStore",
    # Retry
    "RetryConfig",
    "RetryController",
    # Documents
    "DocumentLibrary",
    "parse_document",
    "filter_documents",
    # Types
    "Snapshot",
    "Contributor",
    "CacheEntry",
    "FetchStatus",
    "Loading",
    "Ready",
    "ReadyStale",
    "Failed",
    "ErrorKind",
    "DocumentRecord",
    "Stability",
    # Exceptions
    "HorizonError",
    "ConfigurationError",
    "RateLimitedError",
    "NotReadyError",
    "EmptyResultError",
    "TransientUpstreamError",
    "UpstreamUnavailableError",
    "EnrichmentError",
    "RetryExhaustedError",
    "MalformedDocumentError",
    "NoDataAvailableError",
    # Logging
    "configure_logging",
    "get_logger",
]
