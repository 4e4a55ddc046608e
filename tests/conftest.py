"""Shared fixtures."""

from horizon_content.testing.fixtures import (  # noqa: F401
    clock,
    memory_cache,
    mock_api,
    sample_snapshot,
    sleeper,
    stats_config,
)
