"""
Periodic upstream refresh that keeps the local snapshot current.
"""

import asyncio
from typing import Optional, TYPE_CHECKING

from shared.logging import get_logger
from shared.errors import UpstreamFetchFailed

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from .adapters.snapshot_store import SnapshotStore
    from .adapters.upstream_client import UpstreamClient


class SnapshotRefresher:
    """Fetches the upstream resource on a fixed interval and writes the snapshot.

    The volatile cache is left alone; fresh data reaches clients once the
    current cache entry expires and the read path falls back to the snapshot.
    """

    def __init__(
        self,
        upstream_client: "UpstreamClient",
        snapshot_store: "SnapshotStore",
        interval_seconds: float,
    ):
        self.upstream_client = upstream_client
        self.snapshot_store = snapshot_store
        self.interval_seconds = interval_seconds
        self.logger = get_logger("proxy.refresher")
        self._task: Optional[asyncio.Task] = None

    @property
    def enabled(self) -> bool:
        return self.interval_seconds > 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh_once(self) -> bool:
        """Fetch and store once. Failures are logged and reported as False."""
        try:
            data = await self.upstream_client.fetch()
        except UpstreamFetchFailed as exc:
            self.logger.error("Error fetching data from API", error=exc.message, details=exc.details)
            return False

        if not await self.snapshot_store.save(data):
            return False

        self.logger.info("Data fetched and stored successfully", path=str(self.snapshot_store.path))
        return True

    async def _run(self) -> None:
        while True:
            try:
                await self.refresh_once()
            except Exception as exc:
                self.logger.error("Snapshot refresh failed", error=str(exc), exc_info=True)
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        """Start the background loop if enabled and not already running."""
        if not self.enabled or self.running:
            return
        self._task = asyncio.create_task(self._run())
        self.logger.info("Snapshot refresher started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self.logger.info("Snapshot refresher stopped")
