"""Debounced title lookup for the bookmark form.

Typing a URL schedules a fetch after a quiet period; every new URL
cancels the previous lookup, and a result is only applied if it belongs
to the most recent request.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_QUIET_PERIOD = 1.0  # seconds


class TitleFetcher:
    """Fetch a page title for the URL being typed, applying only the newest result."""

    def __init__(
        self,
        fetch: Callable[[str], Awaitable[str]],
        on_title: Callable[[str], Any],
        on_error: Optional[Callable[[Exception], Any]] = None,
        quiet_period: float = DEFAULT_QUIET_PERIOD,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._fetch = fetch
        self._on_title = on_title
        self._on_error = on_error
        self.quiet_period = quiet_period
        self._sleep = sleep
        self._generation = 0
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def pending(self) -> bool:
        """True while a lookup is waiting or in flight."""
        return self._task is not None and not self._task.done()

    def url_changed(self, url: str, current_title: str = "") -> None:
        """React to an edit of the URL field.

        Any earlier lookup is cancelled.  A new one is scheduled only when
        the URL is non-blank and the user hasn't typed a title.
        """
        self.cancel()
        url = url.strip()
        if not url or current_title.strip():
            return
        self._schedule(url, self.quiet_period)

    def fetch_now(self, url: str) -> asyncio.Task[None]:
        """Cancel any pending lookup and fetch *url* immediately."""
        self.cancel()
        return self._schedule(url.strip(), 0)

    def cancel(self) -> None:
        """Drop the pending lookup; a result already on its way is discarded."""
        self._generation += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def close(self) -> None:
        """Cancel outstanding work and wait for it to unwind."""
        task = self._task
        self.cancel()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    def _schedule(self, url: str, delay: float) -> asyncio.Task[None]:
        generation = self._generation
        self._task = asyncio.create_task(self._run(url, delay, generation))
        return self._task

    async def _run(self, url: str, delay: float, generation: int) -> None:
        if delay > 0:
            await self._sleep(delay)
        try:
            title = await self._fetch(url)
        except Exception as e:
            if generation != self._generation:
                return
            logger.warning("Title lookup failed url=%s error=%s", url, e)
            if self._on_error is not None:
                self._on_error(e)
            return

        if generation != self._generation:
            logger.debug("Dropping stale title url=%s", url)
            return
        self._on_title(title)
