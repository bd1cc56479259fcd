"""Synchronous wrappers around the async Notekeeper client.

Streamlit reruns are synchronous, so every call is handed to one shared
:class:`client.runtime.ClientRuntime` whose background loop owns the
client and its request queue.  Failures surface as
:class:`client.errors.ApiError` whose message is safe to show to the user.
"""

from __future__ import annotations

import atexit
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

import streamlit as st

from client.config import ClientSettings
from client.connectivity import ConnectionStatus
from client.records import Bookmark, Note, NotekeeperApi
from client.runtime import ClientRuntime, TitleLookup

T = TypeVar("T")

settings = ClientSettings()


@st.cache_resource
def get_runtime() -> ClientRuntime:
    """The process-wide runtime; all sessions share its queue."""
    runtime = ClientRuntime(settings)
    atexit.register(runtime.close)
    return runtime


def _call(fn: Callable[[NotekeeperApi], Awaitable[T]]) -> T:
    return get_runtime().call(fn)


def new_title_lookup() -> TitleLookup:
    """A debounced title lookup for one bookmark form."""
    return TitleLookup(get_runtime(), quiet_period=settings.debounce)


def list_notes(
    q: Optional[str] = None, tags: Sequence[str] = (), limit: Optional[int] = None
) -> list[Note]:
    """GET /api/notes — notes matching the search term and all tags."""
    return _call(lambda api: api.list_notes(q=q, tags=tags, limit=limit))


def create_note(title: str, content: str, tags: Sequence[str]) -> Note:
    """POST /api/notes — create a note."""
    return _call(lambda api: api.create_note(title, content, tags))


def update_note(note_id: str, title: str, content: str, tags: Sequence[str]) -> Note:
    """PUT /api/notes/{id} — replace a note."""
    return _call(lambda api: api.update_note(note_id, title, content, tags))


def delete_note(note_id: str) -> None:
    """DELETE /api/notes/{id}."""
    _call(lambda api: api.delete_note(note_id))


def list_bookmarks(
    q: Optional[str] = None, tags: Sequence[str] = (), limit: Optional[int] = None
) -> list[Bookmark]:
    """GET /api/bookmarks — bookmarks matching the search term and all tags."""
    return _call(lambda api: api.list_bookmarks(q=q, tags=tags, limit=limit))


def create_bookmark(url: str, title: Optional[str], tags: Sequence[str]) -> Bookmark:
    """POST /api/bookmarks — create a bookmark (title fetched when blank)."""
    return _call(lambda api: api.create_bookmark(url, title, tags))


def update_bookmark(
    bookmark_id: str, url: str, title: Optional[str], tags: Sequence[str]
) -> Bookmark:
    """PUT /api/bookmarks/{id} — replace a bookmark."""
    return _call(lambda api: api.update_bookmark(bookmark_id, url, title, tags))


def delete_bookmark(bookmark_id: str) -> None:
    """DELETE /api/bookmarks/{id}."""
    _call(lambda api: api.delete_bookmark(bookmark_id))


def fetch_title(url: str) -> str:
    """POST /api/bookmarks/fetch-title — title of the page at *url*."""
    return _call(lambda api: api.fetch_title(url))


def get_health() -> dict[str, Any]:
    """GET /health — server status."""
    return _call(lambda api: api.health())


def check_connection() -> ConnectionStatus:
    """Check whether we're online and the API answers."""
    runtime = get_runtime()
    return runtime.run(runtime.client.probe.check())
