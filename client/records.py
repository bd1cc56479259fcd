"""Typed records and the endpoint-level API used by the front end.

Responses are parsed strictly: a payload that doesn't match the expected
shape raises :class:`ApiError` with kind ``invalid_response`` instead of
leaking half-parsed data into the UI.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Optional, Sequence, TypeVar, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from client.errors import ApiError, ErrorKind
from client.resilient import ResilientClient

DEFAULT_TITLE_TIMEOUT = 15.0  # seconds

RecordId = Union[str, UUID]


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: UUID
    title: str
    tags: list[str]
    created_at: datetime
    updated_at: datetime


class Note(_Record):
    content: str


class Bookmark(_Record):
    url: str


class _Page(BaseModel):
    count: int
    items: list[Any]

    @model_validator(mode="after")
    def count_matches(self) -> _Page:
        if self.count != len(self.items):
            raise ValueError(f"count {self.count} != {len(self.items)} items")
        return self


class _Title(BaseModel):
    title: str


M = TypeVar("M", bound=BaseModel)


def parse(model: type[M], payload: Any) -> M:
    """Validate *payload* as *model*, raising ``invalid_response`` on mismatch."""
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ApiError(ErrorKind.INVALID_RESPONSE, detail=e.errors()) from e


def parse_list(model: type[M], payload: Any) -> list[M]:
    page = parse(_Page, payload)
    return [parse(model, item) for item in page.items]


def all_tags(records: Iterable[_Record]) -> list[str]:
    """Distinct tags across *records*, in first-seen order."""
    seen: dict[str, None] = {}
    for record in records:
        for tag in record.tags:
            seen.setdefault(tag, None)
    return list(seen)


def _list_params(
    q: Optional[str], tags: Optional[Sequence[str]], limit: Optional[int]
) -> dict[str, Any]:
    params: dict[str, Any] = {}
    if q and q.strip():
        params["q"] = q.strip()
    if tags:
        params["tags"] = ",".join(tags)
    if limit is not None:
        params["limit"] = limit
    return params


class NotekeeperApi:
    """Notes and bookmarks endpoints on top of a :class:`ResilientClient`."""

    def __init__(
        self, client: ResilientClient, title_timeout: float = DEFAULT_TITLE_TIMEOUT
    ) -> None:
        self.client = client
        self.title_timeout = title_timeout

    # --- Notes ---

    async def list_notes(
        self,
        q: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> list[Note]:
        payload = await self.client.get("/api/notes", params=_list_params(q, tags, limit))
        return parse_list(Note, payload)

    async def get_note(self, note_id: RecordId) -> Note:
        return parse(Note, await self.client.get(f"/api/notes/{note_id}"))

    async def create_note(self, title: str, content: str, tags: Sequence[str] = ()) -> Note:
        body = {"title": title, "content": content, "tags": list(tags)}
        return parse(Note, await self.client.post("/api/notes", json=body))

    async def update_note(
        self, note_id: RecordId, title: str, content: str, tags: Sequence[str] = ()
    ) -> Note:
        body = {"title": title, "content": content, "tags": list(tags)}
        return parse(Note, await self.client.put(f"/api/notes/{note_id}", json=body))

    async def delete_note(self, note_id: RecordId) -> None:
        await self.client.delete(f"/api/notes/{note_id}")

    # --- Bookmarks ---

    async def list_bookmarks(
        self,
        q: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> list[Bookmark]:
        payload = await self.client.get("/api/bookmarks", params=_list_params(q, tags, limit))
        return parse_list(Bookmark, payload)

    async def get_bookmark(self, bookmark_id: RecordId) -> Bookmark:
        return parse(Bookmark, await self.client.get(f"/api/bookmarks/{bookmark_id}"))

    async def create_bookmark(
        self, url: str, title: Optional[str] = None, tags: Sequence[str] = ()
    ) -> Bookmark:
        body = {"url": url, "title": title or None, "tags": list(tags)}
        return parse(Bookmark, await self.client.post("/api/bookmarks", json=body))

    async def update_bookmark(
        self,
        bookmark_id: RecordId,
        url: str,
        title: Optional[str] = None,
        tags: Sequence[str] = (),
    ) -> Bookmark:
        body = {"url": url, "title": title or None, "tags": list(tags)}
        return parse(Bookmark, await self.client.put(f"/api/bookmarks/{bookmark_id}", json=body))

    async def delete_bookmark(self, bookmark_id: RecordId) -> None:
        await self.client.delete(f"/api/bookmarks/{bookmark_id}")

    async def fetch_title(self, url: str) -> str:
        """Ask the server for the title of the page at *url*."""
        payload = await self.client.post(
            "/api/bookmarks/fetch-title", json={"url": url}, timeout=self.title_timeout
        )
        return parse(_Title, payload).title

    async def health(self) -> dict[str, Any]:
        payload = await self.client.get("/health")
        if not isinstance(payload, dict):
            raise ApiError(ErrorKind.INVALID_RESPONSE, detail=payload)
        return payload
