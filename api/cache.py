"""Redis caching layer for fetched page titles.

Caches the titles extracted from remote pages with a configurable TTL.
Handles Redis being unavailable gracefully — titles are simply fetched
every time.  Fallback titles (hostname/URL) are never cached.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Optional

import redis.asyncio as aioredis

from api.metrics import CACHE_OPERATIONS

logger = logging.getLogger(__name__)

CACHE_PREFIX = "title_cache:"
DEFAULT_TTL = 86400  # 24 hours


class TitleCache:
    """Async Redis cache for page titles keyed by URL."""

    def __init__(self, redis_url: str, default_ttl: int = DEFAULT_TTL) -> None:
        self._redis_url = redis_url
        self._default_ttl = default_ttl
        self._client: Optional[aioredis.Redis] = None
        self._hits = 0
        self._misses = 0

    @property
    def available(self) -> bool:
        """Whether the Redis connection is active."""
        return self._client is not None

    async def connect(self) -> None:
        """Connect to Redis. Non-fatal if Redis is unavailable."""
        try:
            self._client = aioredis.from_url(self._redis_url, decode_responses=True)
            await self._client.ping()
            logger.info("Redis title cache connected: %s", self._redis_url)
        except Exception as e:
            logger.warning("Redis unavailable, title caching disabled: %s", e)
            self._client = None

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Cache operations
    # ------------------------------------------------------------------

    async def get(self, url: str) -> Optional[str]:
        """Get a cached title. Returns None on miss or if Redis unavailable."""
        if not self._client:
            return None

        try:
            title = await self._client.get(self._make_key(url))
            if title is not None:
                self._hits += 1
                CACHE_OPERATIONS.labels(operation="hit").inc()
                logger.debug("CACHE_HIT: %s", url)
                return title
            self._misses += 1
            CACHE_OPERATIONS.labels(operation="miss").inc()
            logger.debug("CACHE_MISS: %s", url)
            return None
        except Exception as e:
            logger.warning("Redis get failed: %s", e)
            return None

    async def set(self, url: str, title: str) -> None:
        """Cache a title with TTL."""
        if not self._client:
            return

        try:
            await self._client.setex(self._make_key(url), self._default_ttl, title)
        except Exception as e:
            logger.warning("Redis set failed: %s", e)

    def stats(self) -> dict[str, Any]:
        """Return cache statistics."""
        total = self._hits + self._misses
        hit_rate = self._hits / total if total > 0 else 0.0
        return {
            "available": self.available,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(hit_rate, 4),
        }

    @staticmethod
    def _make_key(url: str) -> str:
        """Create a cache key from the URL."""
        digest = hashlib.sha256(url.encode()).hexdigest()[:16]
        return f"{CACHE_PREFIX}{digest}"
