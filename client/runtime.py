"""Long-lived client for synchronous callers such as Streamlit reruns.

:class:`ClientRuntime` runs one event loop on a daemon thread and owns one
:class:`ResilientClient` on it, so every call from every caller thread
shares the same request queue.  :class:`TitleLookup` drives a
:class:`TitleFetcher` on that loop and parks its results until the caller
picks them up.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Awaitable, Callable, Coroutine, Optional, TypeVar

from client.config import ClientSettings
from client.errors import ApiError
from client.records import NotekeeperApi
from client.resilient import ResilientClient
from client.title_fetcher import DEFAULT_QUIET_PERIOD, TitleFetcher

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ClientRuntime:
    """Background event loop plus the one client that lives on it."""

    def __init__(self, settings: ClientSettings, **client_kwargs: Any) -> None:
        self.settings = settings
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self.loop.run_forever, name="notekeeper-client", daemon=True
        )
        self._thread.start()
        self._closed = False
        # built on the loop so the client's queue and connections belong to it
        self.client: ResilientClient = self.run(self._open(client_kwargs))
        self.api = NotekeeperApi(self.client, title_timeout=settings.title_timeout)
        logger.info(
            "Client runtime started api_url=%s concurrency=%d",
            settings.api_url, settings.concurrency,
        )

    async def _open(self, client_kwargs: dict[str, Any]) -> ResilientClient:
        return ResilientClient.from_settings(self.settings, **client_kwargs)

    def run(self, coro: Coroutine[Any, Any, T], timeout: Optional[float] = None) -> T:
        """Run *coro* on the background loop and block for its result."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop).result(timeout)

    def call(self, fn: Callable[[NotekeeperApi], Awaitable[T]]) -> T:
        """Run ``fn(api)`` on the background loop and block for its result."""
        return self.run(fn(self.api))

    def close(self) -> None:
        """Close the client, then stop and close the loop.  Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        try:
            self.run(self.client.close())
        finally:
            self.loop.call_soon_threadsafe(self.loop.stop)
            self._thread.join()
            self.loop.close()
        logger.info("Client runtime stopped")

    def __enter__(self) -> ClientRuntime:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class TitleLookup:
    """Debounced title lookups for a synchronous form.

    Edits are forwarded to a :class:`TitleFetcher` on the runtime's loop.
    The newest title (or error message) waits in :meth:`take` until the
    form's next pass.
    """

    def __init__(self, runtime: ClientRuntime, quiet_period: float = DEFAULT_QUIET_PERIOD) -> None:
        self._runtime = runtime
        self._lock = threading.Lock()
        self._title: Optional[str] = None
        self._error: Optional[str] = None
        self._waiting = False
        self.fetcher = TitleFetcher(
            runtime.api.fetch_title,
            on_title=self._on_title,
            on_error=self._on_error,
            quiet_period=quiet_period,
        )

    @property
    def waiting(self) -> bool:
        """True from a scheduled lookup until its result arrives or it is cancelled."""
        with self._lock:
            return self._waiting

    def url_changed(self, url: str, current_title: str = "") -> None:
        with self._lock:
            self._waiting = bool(url.strip()) and not current_title.strip()
        self._runtime.loop.call_soon_threadsafe(self.fetcher.url_changed, url, current_title)

    def fetch_now(self, url: str) -> None:
        if not url.strip():
            return
        with self._lock:
            self._waiting = True
        self._runtime.loop.call_soon_threadsafe(self.fetcher.fetch_now, url)

    def cancel(self) -> None:
        with self._lock:
            self._waiting = False
        self._runtime.loop.call_soon_threadsafe(self.fetcher.cancel)

    def take(self) -> tuple[Optional[str], Optional[str]]:
        """Return and clear ``(title, error_message)``; both None when nothing arrived."""
        with self._lock:
            title, error = self._title, self._error
            self._title = self._error = None
        return title, error

    def close(self) -> None:
        """Cancel any outstanding lookup and wait for it to unwind."""
        with self._lock:
            self._waiting = False
        self._runtime.run(self.fetcher.close())

    # Called on the runtime's loop thread.

    def _on_title(self, title: str) -> None:
        with self._lock:
            self._title, self._error, self._waiting = title, None, False

    def _on_error(self, exc: Exception) -> None:
        message = exc.user_message if isinstance(exc, ApiError) else str(exc)
        with self._lock:
            self._title, self._error, self._waiting = None, message, False
