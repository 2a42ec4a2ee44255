"""
Sequencing for batch lookups.
"""

import asyncio
from datetime import timedelta


class Throttle:
    """
    Runs steps one at a time with at least `interval` between the end of one
    step and the start of the next. Expected usage:

    throttle = Throttle(timedelta(milliseconds=200))

    for serial in serials:
        async with throttle:
            await resolve_by_serial(...)
    """

    interval: float

    def __init__(self, interval: timedelta):
        self.interval = interval.total_seconds()
        self._lock = asyncio.Lock()
        self._last_completed: float | None = None

    async def __aenter__(self):
        await self._lock.acquire()

        if self._last_completed is not None:
            loop = asyncio.get_running_loop()
            wait = self._last_completed + self.interval - loop.time()
            if wait > 0:
                try:
                    await asyncio.sleep(wait)
                except asyncio.CancelledError:
                    self._lock.release()
                    raise

        return self

    async def __aexit__(self, exc_type, exc, tb):
        self._last_completed = asyncio.get_running_loop().time()
        self._lock.release()
