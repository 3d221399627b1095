"""
Background cleanup worker for expired shares.
"""
import asyncio
import logging
from typing import Optional

from sharebin.database import ShareStore

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 60


class ExpiryReaper:
    """
    Deletes time-expired shares on a fixed interval.

    Owned by the application lifespan: start() on startup, stop() on
    shutdown. Tests call run_once() directly instead of waiting.
    """

    def __init__(self, store: ShareStore, interval: float = DEFAULT_INTERVAL):
        self.store = store
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        """Run a single sweep. Failures are logged, never raised."""
        try:
            deleted = await self.store.delete_expired()
        except Exception:
            logger.exception("Cleanup error")
            return 0
        if deleted:
            logger.info(f"Deleted {deleted} expired share(s)")
        return deleted

    async def _loop(self):
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval)

    def start(self):
        """Start the background task. No-op if already running."""
        if not self.running:
            self._task = asyncio.create_task(self._loop())

    async def stop(self):
        """Cancel the background task and wait for it to finish."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
