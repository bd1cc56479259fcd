"""Service instances shared by the routers, exposed as FastAPI dependencies."""

from __future__ import annotations

from api.cache import TitleCache
from api.config import settings
from api.database import Database
from api.titles import TitleService

db = Database(settings.database_url, language=settings.search_language)
title_cache = TitleCache(settings.redis_url, default_ttl=settings.title_cache_ttl)
titles = TitleService(title_cache, timeout=settings.title_fetch_timeout)


def get_database() -> Database:
    return db


def get_title_service() -> TitleService:
    return titles
