"""
Pytest plugin for horizon_content testing fixtures.

To use these fixtures in your tests, add this to your conftest.py:

    pytest_plugins = ["horizon_content.testing.conftest"]
"""

# Re-export all fixtures for pytest auto-discovery
from horizon_content.testing.fixtures import (
    clock,
    memory_cache,
    mock_api,
    sample_snapshot,
    sleeper,
    stats_config,
)

__all__ = [
    "mock_api",
    "clock",
    "sleeper",
    "memory_cache",
    "stats_config",
    "sample_snapshot",
]
