# fleettrack/core/heartbeat.py
import asyncio
import logging
from typing import Optional

from fleettrack.core.session import SessionStore

logger = logging.getLogger(__name__)


class SessionHeartbeat:
    """Re-verifies the session on a fixed interval while someone is signed in."""

    def __init__(self, store: SessionStore, interval: float):
        self.store = store
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while self.store.authenticated:
            await asyncio.sleep(self.interval)
            if not self.store.authenticated:
                break
            # verify() never raises; it logs out on failure
            await self.store.verify()
        logger.debug("Heartbeat stopped: no active session")
