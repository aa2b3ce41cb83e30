"""
Network availability detection.

ConnectivityMonitor checks a URL and feeds the result into OfflineGlobals,
which the router reads on every call. It can run once (``check``) or as a
background polling task (``start``/``stop``).
"""

from __future__ import annotations

import asyncio

import aiohttp

from .config import OfflineGlobals
from .logging_utils import get_store_logger

logger = get_store_logger("connectivity")


class ConnectivityMonitor:
    """Polls a URL and updates online status.

    Any HTTP response counts as online; connection errors and timeouts
    count as offline.
    """

    def __init__(
        self,
        offline_globals: OfflineGlobals,
        url: str = "https://www.google.com",
        interval: float = 30.0,
        timeout: float = 5.0,
    ) -> None:
        """Initialize the monitor.

        Args:
            offline_globals: Flags to update
            url: URL requested with HEAD
            interval: Seconds between checks when running in the background
            timeout: Probe timeout in seconds
        """
        self.offline_globals = offline_globals
        self.url = url
        self.interval = interval
        self.timeout = timeout
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def check(self) -> bool:
        """Probe once and update online status.

        Returns:
            True if online, False otherwise
        """
        online = await self._reachable()
        self.offline_globals.set_online_status(online)
        return online

    async def _reachable(self) -> bool:
        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.head(self.url, allow_redirects=True):
                    return True
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.warning(f"Connectivity check against {self.url} failed: {e}")
            return False

    async def start(self) -> None:
        """Start background polling. No-op if already running."""
        if self.running:
            return
        self._task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        """Stop background polling."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _poll_loop(self) -> None:
        while True:
            await self.check()
            await asyncio.sleep(self.interval)
