"""horizon_content testing utilities.

Provides a mock upstream API, a manual clock and fixtures for testing code
that uses horizon_content.
"""

from horizon_content.testing.fixtures import (
    create_mock_contributor,
    create_mock_entry,
    create_mock_snapshot,
)
from horizon_content.testing.mock import (
    ManualClock,
    MockCall,
    MockGitHubAPI,
    MockResponse,
    RecordingSleeper,
    stats_payload,
    user_payload,
)

__all__ = [
    # Mock upstream
    "MockGitHubAPI",
    "MockCall",
    "MockResponse",
    "ManualClock",
    "RecordingSleeper",
    # Helper functions
    "create_mock_contributor",
    "create_mock_snapshot",
    "create_mock_entry",
    "stats_payload",
    "user_payload",
]
