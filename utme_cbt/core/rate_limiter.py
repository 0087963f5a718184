# utme_cbt/core/rate_limiter.py
import asyncio
import logging
import time
from typing import Awaitable, Callable

from .config import config

logger = logging.getLogger(__name__)

class RateLimiter:
    """Minimum spacing between outbound provider calls.

    The last-request timestamp is shared by every client that holds this
    limiter. The check, the sleep and the new stamp all happen under one
    lock so concurrent callers queue up instead of racing past the delay.
    """

    def __init__(self, min_delay: float = None,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.min_delay = min_delay if min_delay is not None else config.ALOC_RATE_LIMIT_DELAY
        self._clock = clock
        self._sleep = sleep
        self._last_request_time = None
        self._lock = asyncio.Lock()

    async def wait(self) -> float:
        """Block until a call may be issued; returns the seconds slept"""
        async with self._lock:
            waited = 0.0

            if self._last_request_time is not None:
                elapsed = self._clock() - self._last_request_time
                if elapsed < self.min_delay:
                    waited = self.min_delay - elapsed
                    logger.debug(f"Rate limit: sleeping {waited:.3f}s")
                    await self._sleep(waited)

            self._last_request_time = self._clock()
            return waited

    @property
    def last_request_time(self):
        return self._last_request_time
