"""
Mount/unmount lifecycle for a view that shows community statistics.

A view receives every status change through a callback: Loading first
(with retry progress), then the settled status, then possibly a newer
Ready from a background refresh. Results that arrive after ``unmount()``
are discarded; nothing is cancelled in the network layer.
"""

import asyncio

from horizon_content.logging import get_logger
from horizon_content.orchestrator import StatsOrchestrator, StatusListener
from horizon_content.retry import Sleeper
from horizon_content.types.stats import FetchStatus, Loading

logger = get_logger()


class StatsView:
    """Presentation-side handle on a StatsOrchestrator."""

    def __init__(self, orchestrator: StatsOrchestrator, on_status: StatusListener) -> None:
        self.orchestrator = orchestrator
        self.on_status = on_status
        self.status: FetchStatus = Loading()
        self._mounted = False
        self._generation = 0

    @property
    def mounted(self) -> bool:
        return self._mounted

    async def mount(self) -> FetchStatus:
        """Start showing statistics and return the settled status."""
        self._mounted = True
        return await self._load()

    def unmount(self) -> None:
        """Stop delivering results; in-flight loads finish unobserved."""
        self._mounted = False
        self._generation += 1

    async def retry(self) -> FetchStatus:
        """Manual retry offered by the error state."""
        return await self._load()

    async def poll(self, interval: float, sleep: Sleeper = asyncio.sleep) -> None:
        """
        Reload every ``interval`` seconds while mounted, but only when the
        cache is missing or stale and the cooldown allows a live fetch.
        """
        while self._mounted:
            await sleep(interval)
            if not self._mounted:
                break
            if self.orchestrator.needs_refresh():
                await self._load()

    async def _load(self) -> FetchStatus:
        generation = self._generation
        max_attempts = self.orchestrator.config.retry.max_attempts

        def deliver(status: FetchStatus) -> None:
            self._emit(status, generation)

        def progress(attempt: int, total: int) -> None:
            self._emit(Loading(attempt, total), generation)

        deliver(Loading(0, max_attempts))
        status = await self.orchestrator.get_stats(on_refresh=deliver, on_retry=progress)
        deliver(status)
        return status

    def _emit(self, status: FetchStatus, generation: int) -> None:
        if not self._mounted or generation != self._generation:
            logger.debug("Discarding late %s status", status.state)
            return
        self.status = status
        self.on_status(status)
