"""PostgreSQL persistence for notes and bookmarks.

Uses SQLAlchemy async engine with asyncpg driver.  PostgreSQL being
unavailable at startup is not fatal: the service keeps answering health
checks and every record operation raises :class:`DatabaseUnavailable`.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any, AsyncIterator, Optional

from sqlalchemy import delete, insert, select, text, update
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from api.metrics import RECORD_OPERATIONS
from api.query import FilterSpec, compile_query
from api.tables import Collection, metadata

logger = logging.getLogger(__name__)


class DatabaseUnavailable(RuntimeError):
    """Raised when a record operation runs without a database connection."""


class Database:
    """Async PostgreSQL store for tagged records."""

    def __init__(self, database_url: str, language: Optional[str] = None) -> None:
        self._url = database_url
        self._language = language
        self._engine: Optional[AsyncEngine] = None

    @property
    def available(self) -> bool:
        """Whether the PostgreSQL connection is active."""
        return self._engine is not None

    async def init(self) -> None:
        """Create engine, connection pool, tables and indexes.

        Non-fatal if PostgreSQL is unavailable.
        """
        try:
            self._engine = create_async_engine(self._url, pool_size=5, max_overflow=10)
            async with self._engine.begin() as conn:
                await conn.run_sync(metadata.create_all)
            logger.info("PostgreSQL connected — tables ready")
        except Exception as e:
            logger.warning("PostgreSQL unavailable, record operations disabled: %s", e)
            self._engine = None

    async def close(self) -> None:
        """Dispose of the engine and connection pool."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None

    async def ping(self) -> bool:
        """Run a trivial query; False when the datastore does not answer."""
        if not self._engine:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("PostgreSQL ping failed: %s", e)
            return False

    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------

    async def create(self, collection: Collection, values: dict[str, Any]) -> dict[str, Any]:
        """Insert a record; created_at and updated_at share one timestamp."""
        table = collection.table
        now = datetime.now(UTC)
        row = {**values, "id": uuid.uuid4(), "created_at": now, "updated_at": now}
        async with self._operation(collection, "create", write=True) as conn:
            result = await conn.execute(insert(table).values(**row).returning(table))
            return dict(result.mappings().one())

    async def find(
        self, collection: Collection, spec: FilterSpec, limit: Optional[int] = None
    ) -> list[dict[str, Any]]:
        """Return the records matching *spec*."""
        stmt = compile_query(collection, spec, limit=limit, language=self._language)
        async with self._operation(collection, "list") as conn:
            result = await conn.execute(stmt)
            return [dict(row) for row in result.mappings().all()]

    async def get(self, collection: Collection, record_id: uuid.UUID) -> Optional[dict[str, Any]]:
        """Fetch one record by id, or None."""
        table = collection.table
        async with self._operation(collection, "get") as conn:
            result = await conn.execute(select(table).where(table.c.id == record_id))
            row = result.mappings().first()
            return dict(row) if row else None

    async def replace(
        self, collection: Collection, record_id: uuid.UUID, values: dict[str, Any]
    ) -> Optional[dict[str, Any]]:
        """Rewrite every mutable field of a record; None when it does not exist."""
        table = collection.table
        stmt = (
            update(table)
            .where(table.c.id == record_id)
            .values(**values, updated_at=datetime.now(UTC))
            .returning(table)
        )
        async with self._operation(collection, "replace", write=True) as conn:
            result = await conn.execute(stmt)
            row = result.mappings().first()
            return dict(row) if row else None

    async def delete(self, collection: Collection, record_id: uuid.UUID) -> None:
        """Delete a record.  Deleting a missing id is not an error."""
        table = collection.table
        async with self._operation(collection, "delete", write=True) as conn:
            result = await conn.execute(delete(table).where(table.c.id == record_id))
            if not result.rowcount:
                logger.info("Delete %s id=%s matched no rows", collection.name, record_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _operation(
        self, collection: Collection, operation: str, *, write: bool = False
    ) -> AsyncIterator[AsyncConnection]:
        """Open a connection (a transaction for writes) and count the outcome."""
        if not self._engine:
            RECORD_OPERATIONS.labels(
                collection=collection.name, operation=operation, status="unavailable"
            ).inc()
            raise DatabaseUnavailable("PostgreSQL is not connected")

        ctx = self._engine.begin() if write else self._engine.connect()
        try:
            async with ctx as conn:
                yield conn
        except Exception:
            RECORD_OPERATIONS.labels(
                collection=collection.name, operation=operation, status="error"
            ).inc()
            raise
        RECORD_OPERATIONS.labels(
            collection=collection.name, operation=operation, status="success"
        ).inc()
