#!/usr/bin/env python3
"""
Basic horizon_content usage example.

Loads the community statistics for the Horizon repository (set GITHUB_TOKEN
for a higher rate limit) and, if given, a directory of Markdown documents.
Run with: python examples/basic_usage.py [docs-directory]
"""

import asyncio
import logging
import sys

from horizon_content import (
    AsyncGitHubClient,
    CacheStore,
    DocumentLibrary,
    Failed,
    FileStore,
    Loading,
    StatsConfig,
    StatsOrchestrator,
    StatsView,
    configure_logging,
)
from horizon_content.display import progress_text, stat_tiles


def show(status) -> None:
    if isinstance(status, Loading):
        print(f"   {progress_text(status)}")
    elif isinstance(status, Failed):
        print(f"   Error: {status.reason}")
    else:
        if status.state == "readyStale":
            print(f"   Warning: {status.reason}")
        for tile in stat_tiles(status.snapshot):
            print(f"   {tile.label:>14}: {tile.value}")
        for contributor in status.snapshot.contributors[:5]:
            print(f"   {contributor.identifier:>14}: {contributor.contribution_magnitude}")


async def main() -> None:
    configure_logging(level=logging.WARNING)
    config = StatsConfig.from_env()
    cache = CacheStore(FileStore(".horizon-cache"), config.cache_key)

    print("=== Horizon community statistics ===\n")
    async with AsyncGitHubClient.from_env() as client:
        orchestrator = StatsOrchestrator(client, cache, config)
        view = StatsView(orchestrator, show)
        await view.mount()
        await orchestrator.wait_for_background()
        view.unmount()

    if len(sys.argv) > 1:
        print("\n=== Documents ===\n")
        library = DocumentLibrary.from_directory(sys.argv[1])
        for record in library.records:
            print(f"   [{record.stability.value}] {record.title} ({record.reading_time} min)")
        for warning in library.warnings:
            print(f"   skipped: {warning}")


if __name__ == "__main__":
    asyncio.run(main())
