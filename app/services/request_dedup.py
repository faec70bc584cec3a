"""
app/services/request_dedup.py

Purpose: In-flight request deduplication for weather routes

- Identical concurrent requests share one upstream call
- A repeat within the skip window of the previous call is skipped (None)
- Timestamps are forgotten a few seconds after the call settles
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from app.core.logging import get_logger

logger = get_logger(__name__)


class RequestDeduplicator:
    """
    Keyed coalescing of coroutine calls.

    Usage:
        dedup = RequestDeduplicator()
        data = await dedup.run("current_21.0_105.8_metric", lambda: fetch(...))
    """

    def __init__(self, skip_window: float = 0.5, forget_after: float = 5.0):
        self.skip_window = skip_window
        self.forget_after = forget_after
        self._pending: Dict[str, asyncio.Future] = {}
        self._timestamps: Dict[str, float] = {}

    def _forget(self, key: str, stamp: float):
        # A newer call may have re-recorded the key
        if self._timestamps.get(key) == stamp:
            del self._timestamps[key]

    async def run(self, key: str, request_fn: Callable[[], Awaitable[Any]]) -> Optional[Any]:
        """
        Runs request_fn unless an identical request is pending or just ran.

        Returns:
            The shared result, or None if the call was skipped as a duplicate
        """
        pending = self._pending.get(key)
        if pending is not None:
            logger.debug(f"Request {key} already in progress, waiting for result...")
            return await asyncio.shield(pending)

        last = self._timestamps.get(key)
        now = time.monotonic()
        if last is not None and now - last < self.skip_window:
            logger.debug(f"Request {key} made too recently, skipping...")
            return None

        self._timestamps[key] = now
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._pending[key] = future

        try:
            result = await request_fn()
        except BaseException as exc:
            if not future.done():
                future.set_exception(exc)
                # Mark retrieved so waiters-less failures don't warn
                future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._pending.pop(key, None)
            loop.call_later(self.forget_after, self._forget, key, now)

    def clear(self):
        self._pending.clear()
        self._timestamps.clear()


# Shared instance used by the weather routes
weather_dedup = RequestDeduplicator()
