"""Bounded-concurrency FIFO queue for outgoing API calls.

At most ``concurrency`` calls run at once; the rest wait their turn in
submission order.  A caller cancelled while waiting leaves the line
without consuming a slot.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CONCURRENCY = 3


class RequestQueue:
    """Run coroutine factories with a cap on how many are in flight."""

    def __init__(self, concurrency: int = DEFAULT_CONCURRENCY) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.concurrency = concurrency
        self._active = 0
        self._waiters: deque[asyncio.Future[None]] = deque()

    @property
    def active(self) -> int:
        """Number of calls currently running."""
        return self._active

    @property
    def pending(self) -> int:
        """Number of calls waiting for a slot."""
        return sum(1 for w in self._waiters if not w.done())

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Wait for a slot, then await ``fn()`` and return (or raise) its outcome."""
        await self._acquire()
        try:
            return await fn()
        finally:
            self._release()

    async def _acquire(self) -> None:
        if self._active < self.concurrency and not self._waiters:
            self._active += 1
            return

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        logger.debug("Request queued active=%d pending=%d", self._active, len(self._waiters))
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # The slot was handed over just before the cancellation landed.
                self._release()
            else:
                self._remove(waiter)
            raise

    def _release(self) -> None:
        # Hand the slot straight to the oldest live waiter so it can't be
        # taken by a newcomer in between.
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        self._active -= 1

    def _remove(self, waiter: asyncio.Future[None]) -> None:
        try:
            self._waiters.remove(waiter)
        except ValueError:
            pass
