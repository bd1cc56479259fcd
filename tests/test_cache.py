"""Unit tests for api.cache — Redis page-title cache."""

from __future__ import annotations

import hashlib
from unittest.mock import AsyncMock, patch

import pytest

from api.cache import CACHE_PREFIX, DEFAULT_TTL, TitleCache

URL = "https://example.com/page"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _expected_key(url: str) -> str:
    """Reproduce the cache key algorithm."""
    return f"{CACHE_PREFIX}{hashlib.sha256(url.encode()).hexdigest()[:16]}"


def _make_cache(ttl: int = DEFAULT_TTL) -> TitleCache:
    """Create a TitleCache with a mocked Redis client."""
    cache = TitleCache("redis://localhost:6379", default_ttl=ttl)
    cache._client = AsyncMock()
    return cache


# ---------------------------------------------------------------------------
# Connection
# ---------------------------------------------------------------------------


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect_success(self):
        """Successful Redis connection sets client."""
        cache = TitleCache("redis://localhost:6379")
        mock_client = AsyncMock()
        mock_client.ping = AsyncMock(return_value=True)

        with patch("api.cache.aioredis.from_url", return_value=mock_client):
            await cache.connect()

        assert cache.available is True
        mock_client.ping.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connect_failure_sets_none(self):
        """Failed Redis connection sets client to None (graceful degradation)."""
        cache = TitleCache("redis://localhost:6379")

        with patch(
            "api.cache.aioredis.from_url",
            side_effect=ConnectionError("refused"),
        ):
            await cache.connect()

        assert cache.available is False

    @pytest.mark.asyncio
    async def test_close(self):
        """Close disconnects the client."""
        cache = _make_cache()
        client = cache._client
        await cache.close()
        client.aclose.assert_awaited_once()
        assert cache._client is None


# ---------------------------------------------------------------------------
# Cache get / set
# ---------------------------------------------------------------------------


class TestGetSet:
    @pytest.mark.asyncio
    async def test_cache_miss(self):
        """Returns None on cache miss and increments miss counter."""
        cache = _make_cache()
        cache._client.get = AsyncMock(return_value=None)

        assert await cache.get(URL) is None
        assert cache._misses == 1
        assert cache._hits == 0

    @pytest.mark.asyncio
    async def test_cache_hit(self):
        """Returns cached title on hit and increments hit counter."""
        cache = _make_cache()
        cache._client.get = AsyncMock(return_value="Example Page")

        assert await cache.get(URL) == "Example Page"
        cache._client.get.assert_awaited_once_with(_expected_key(URL))
        assert cache._hits == 1
        assert cache._misses == 0

    @pytest.mark.asyncio
    async def test_set_stores_with_ttl(self):
        """set() stores the title in Redis with the configured TTL."""
        cache = _make_cache(ttl=300)
        cache._client.setex = AsyncMock()

        await cache.set(URL, "Example Page")

        cache._client.setex.assert_awaited_once_with(_expected_key(URL), 300, "Example Page")

    @pytest.mark.asyncio
    async def test_get_returns_none_when_no_client(self):
        """get() returns None when Redis is not connected."""
        cache = TitleCache("redis://localhost:6379")

        assert await cache.get(URL) is None
        # No miss counter increment when Redis is unavailable
        assert cache._misses == 0

    @pytest.mark.asyncio
    async def test_set_noop_when_no_client(self):
        """set() does nothing when Redis is not connected."""
        cache = TitleCache("redis://localhost:6379")
        await cache.set(URL, "Title")

    @pytest.mark.asyncio
    async def test_get_handles_redis_error(self):
        """get() returns None on Redis errors (graceful degradation)."""
        cache = _make_cache()
        cache._client.get = AsyncMock(side_effect=ConnectionError("lost"))

        assert await cache.get(URL) is None

    @pytest.mark.asyncio
    async def test_set_handles_redis_error(self):
        """set() silently ignores Redis errors."""
        cache = _make_cache()
        cache._client.setex = AsyncMock(side_effect=ConnectionError("lost"))

        await cache.set(URL, "Title")


# ---------------------------------------------------------------------------
# Key generation
# ---------------------------------------------------------------------------


class TestKeyGeneration:
    def test_deterministic_key(self):
        assert TitleCache._make_key(URL) == TitleCache._make_key(URL)

    def test_different_urls_different_key(self):
        assert TitleCache._make_key(URL) != TitleCache._make_key(URL + "?x=1")

    def test_key_has_prefix(self):
        """Cache keys start with the namespace prefix."""
        assert TitleCache._make_key(URL).startswith(CACHE_PREFIX)


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


class TestStats:
    def test_stats_empty(self):
        cache = _make_cache()
        assert cache.stats() == {
            "available": True,
            "hits": 0,
            "misses": 0,
            "hit_rate": 0.0,
        }

    def test_stats_with_activity(self):
        """Stats reflect hits and misses."""
        cache = _make_cache()
        cache._hits = 3
        cache._misses = 7

        stats = cache.stats()
        assert stats["hits"] == 3
        assert stats["misses"] == 7
        assert stats["hit_rate"] == 0.3

    def test_stats_no_client(self):
        """Stats still work when Redis is unavailable."""
        cache = TitleCache("redis://localhost:6379")
        cache._misses = 5

        stats = cache.stats()
        assert stats["available"] is False
        assert stats["misses"] == 5
