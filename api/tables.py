"""Table definitions for notes and bookmarks.

Both record kinds share one shape: a UUID primary key, inline ``text[]``
tags and creation/update timestamps.  A :class:`Collection` bundles a table
with the columns that feed its full-text search document.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    MetaData,
    String,
    Table,
    Text,
    func,
    literal_column,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.sql.elements import ColumnElement

from api.config import settings

TITLE_MAX_LENGTH = 255
URL_MAX_LENGTH = 2048

metadata = MetaData()


def _record_columns() -> list[Column]:
    """Columns common to every record table (fresh objects per table)."""
    return [
        Column("tags", ARRAY(Text), nullable=False, server_default=text("'{}'")),
        Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
        Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    ]


notes = Table(
    "notes",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, default=uuid.uuid4),
    Column("title", String(TITLE_MAX_LENGTH), nullable=False),
    Column("content", Text, nullable=False),
    *_record_columns(),
)

bookmarks = Table(
    "bookmarks",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, default=uuid.uuid4),
    Column("url", String(URL_MAX_LENGTH), nullable=False),
    Column("title", String(TITLE_MAX_LENGTH), nullable=False),
    *_record_columns(),
)


def search_config(language: str | None = None) -> ColumnElement:
    """The text search configuration as an inline ``regconfig`` literal.

    Inlined rather than bound so that query expressions match the GIN
    expression indexes below.
    """
    return literal_column(f"'{language or settings.search_language}'::regconfig")


@dataclass(frozen=True)
class Collection:
    """A record kind: its table and the fields that make up its search text."""

    name: str
    label: str
    table: Table
    text_fields: tuple[str, ...]

    def document(self) -> ColumnElement:
        """Concatenate the text fields with single spaces."""
        columns = [self.table.c[field] for field in self.text_fields]
        expr = columns[0]
        for column in columns[1:]:
            expr = expr + " " + column
        return expr

    def tsvector(self, language: str | None = None) -> ColumnElement:
        return func.to_tsvector(search_config(language), self.document())


NOTES = Collection(name="notes", label="Note", table=notes, text_fields=("title", "content"))
BOOKMARKS = Collection(
    name="bookmarks", label="Bookmark", table=bookmarks, text_fields=("title", "url")
)

# GIN indexes backing the search and tag-containment predicates
Index("ix_notes_search", NOTES.tsvector(), postgresql_using="gin")
Index("ix_notes_tags", notes.c.tags, postgresql_using="gin")
Index("ix_bookmarks_search", BOOKMARKS.tsvector(), postgresql_using="gin")
Index("ix_bookmarks_tags", bookmarks.c.tags, postgresql_using="gin")
