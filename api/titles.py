"""Remote page title extraction for bookmarks.

Fetching a title never fails from the caller's point of view: network
errors, non-HTML responses and pages without a ``<title>`` all fall back
to the URL's hostname (or the raw URL when it has none).
"""

from __future__ import annotations

import logging
import time
from typing import Optional
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from api.cache import TitleCache
from api.metrics import TITLE_FETCH_DURATION, TITLE_FETCHES
from api.tables import TITLE_MAX_LENGTH

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10  # seconds
USER_AGENT = "Notekeeper/1.0 (+title-fetch)"


def extract_title(html: str) -> Optional[str]:
    """Return the trimmed text of the document's <title>, or None."""
    soup = BeautifulSoup(html, "html.parser")
    if soup.title is None:
        return None
    title = " ".join(soup.title.get_text().split())
    return title or None


def fallback_title(url: str) -> str:
    """The hostname of *url*, or the URL itself when it has none."""
    try:
        host = urlparse(url).hostname
    except ValueError:
        host = None
    return host or url


class TitleService:
    """Fetches page titles, consulting the title cache first."""

    def __init__(
        self,
        cache: Optional[TitleCache] = None,
        timeout: float = REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.cache = cache
        self._timeout = timeout
        self._transport = transport

    async def get_title(self, url: str) -> str:
        """Return the page title for *url*, falling back to its hostname."""
        if self.cache:
            cached = await self.cache.get(url)
            if cached is not None:
                TITLE_FETCHES.labels(outcome="cached").inc()
                return cached

        start = time.perf_counter()
        try:
            title = await self._fetch(url)
        except httpx.TimeoutException:
            logger.warning("Title fetch timed out url=%s", url)
            title = None
        except Exception as e:
            logger.warning("Title fetch failed url=%s error=%s", url, e)
            title = None
        finally:
            TITLE_FETCH_DURATION.observe(time.perf_counter() - start)

        if title is None:
            TITLE_FETCHES.labels(outcome="fallback").inc()
            return fallback_title(url)[:TITLE_MAX_LENGTH]

        title = title[:TITLE_MAX_LENGTH]
        TITLE_FETCHES.labels(outcome="fetched").inc()
        if self.cache:
            await self.cache.set(url, title)
        return title

    async def _fetch(self, url: str) -> Optional[str]:
        async with httpx.AsyncClient(
            timeout=self._timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            resp = await client.get(url, headers={"User-Agent": USER_AGENT})
            resp.raise_for_status()
        return extract_title(resp.text)
