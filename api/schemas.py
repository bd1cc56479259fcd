"""Request and response models for the Notekeeper API.

Responses use camelCase field names (``createdAt``/``updatedAt``).  Lists
are always wrapped in the same envelope: ``{"count": n, "items": [...]}``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from urllib.parse import urlparse
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from api.tables import TITLE_MAX_LENGTH, URL_MAX_LENGTH


def validate_url(url: str) -> Optional[str]:
    """Return an error message if *url* is not a valid HTTP(S) URL, else None."""
    try:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https"):
            return "Invalid URL: only http and https are supported"
        if not parsed.hostname:
            return "Invalid URL: missing host"
    except ValueError:
        return "Invalid URL: could not parse"
    return None


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _tags_or_empty(value: Any) -> Any:
    return [] if value is None else value


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class NoteIn(BaseModel):
    """Body of POST /notes and PUT /notes/{id} (full replace)."""

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    content: str = Field(..., min_length=1)
    tags: list[str] = Field(default_factory=list)

    @field_validator("title", "content", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        return _strip(value)

    @field_validator("tags", mode="before")
    @classmethod
    def default_tags(cls, value: Any) -> Any:
        return _tags_or_empty(value)


class BookmarkIn(BaseModel):
    """Body of POST /bookmarks and PUT /bookmarks/{id} (full replace).

    A missing or blank title is filled in from the page at ``url``.
    """

    url: str = Field(..., min_length=1, max_length=URL_MAX_LENGTH)
    title: Optional[str] = Field(None, max_length=TITLE_MAX_LENGTH)
    tags: list[str] = Field(default_factory=list)

    @field_validator("url", "title", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        return _strip(value)

    @field_validator("tags", mode="before")
    @classmethod
    def default_tags(cls, value: Any) -> Any:
        return _tags_or_empty(value)

    @field_validator("url")
    @classmethod
    def check_url(cls, value: str) -> str:
        error = validate_url(value)
        if error:
            raise ValueError(error)
        return value

    @field_validator("title")
    @classmethod
    def blank_title(cls, value: Optional[str]) -> Optional[str]:
        return value or None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID
    title: str
    tags: list[str]
    created_at: datetime
    updated_at: datetime


class NoteOut(_Record):
    """A stored note."""

    content: str


class BookmarkOut(_Record):
    """A stored bookmark."""

    url: str


class NoteList(BaseModel):
    count: int
    items: list[NoteOut]


class BookmarkList(BaseModel):
    count: int
    items: list[BookmarkOut]


class TitleOut(BaseModel):
    title: str


class FieldError(BaseModel):
    field: str
    message: str


class ErrorOut(BaseModel):
    """Error envelope shared by every non-2xx response."""

    error: str
    details: Optional[list[FieldError]] = None
