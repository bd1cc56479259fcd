"""Bookmark endpoints, including remote title lookup.

The fetch-title routes are registered before ``/{bookmark_id}`` so the
literal path segment is never parsed as an id.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response

from api.database import Database
from api.deps import get_database, get_title_service
from api.query import FilterSpec
from api.schemas import BookmarkIn, BookmarkList, BookmarkOut, ErrorOut, TitleOut
from api.tables import BOOKMARKS
from api.titles import TitleService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/bookmarks",
    tags=["bookmarks"],
    responses={400: {"model": ErrorOut}, 404: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)


async def _values(payload: BookmarkIn, titles: TitleService) -> dict[str, Any]:
    """Column values for a bookmark, fetching the page title when none was given."""
    values = payload.model_dump()
    if not values["title"]:
        values["title"] = await titles.get_title(payload.url)
    return values


@router.post("", response_model=BookmarkOut, status_code=201)
async def create_bookmark(
    payload: BookmarkIn,
    db: Database = Depends(get_database),
    titles: TitleService = Depends(get_title_service),
) -> dict:
    """Create a bookmark."""
    values = await _values(payload, titles)
    try:
        bookmark = await db.create(BOOKMARKS, values)
    except Exception:
        logger.exception("Failed to create bookmark url=%s", payload.url)
        raise HTTPException(status_code=500, detail="Failed to create bookmark")
    logger.info("Created bookmark id=%s url=%s", bookmark["id"], bookmark["url"])
    return bookmark


@router.get("", response_model=BookmarkList)
async def list_bookmarks(
    q: Optional[str] = Query(None, description="Full-text search term"),
    tags: Optional[str] = Query(None, description="Comma separated tags, all required"),
    limit: Optional[int] = Query(None, ge=1, le=100, description="Newest N bookmarks"),
    db: Database = Depends(get_database),
) -> dict:
    """List bookmarks, optionally filtered by search term and tags."""
    spec = FilterSpec.from_params(q, tags)
    try:
        bookmarks = await db.find(BOOKMARKS, spec, limit=limit)
    except Exception:
        logger.exception("Failed to fetch bookmarks q=%r tags=%r", q, tags)
        raise HTTPException(status_code=500, detail="Failed to fetch bookmarks")
    return {"count": len(bookmarks), "items": bookmarks}


@router.get("/fetch-title", response_model=TitleOut)
async def fetch_title_query(
    url: Optional[str] = Query(None, description="Page to read the <title> from"),
    titles: TitleService = Depends(get_title_service),
) -> dict:
    """Fetch the title of the page at ``?url=``."""
    if not url or not url.strip():
        raise HTTPException(status_code=400, detail="Missing URL parameter")
    return {"title": await titles.get_title(url.strip())}


@router.post("/fetch-title", response_model=TitleOut)
async def fetch_title_body(
    payload: Optional[dict[str, Any]] = Body(None),
    titles: TitleService = Depends(get_title_service),
) -> dict:
    """Fetch the title of the page at ``{"url": ...}``."""
    url = (payload or {}).get("url")
    if not isinstance(url, str) or not url.strip():
        raise HTTPException(status_code=400, detail="URL is required")
    return {"title": await titles.get_title(url.strip())}


@router.get("/{bookmark_id}", response_model=BookmarkOut)
async def get_bookmark(bookmark_id: UUID, db: Database = Depends(get_database)) -> dict:
    """Fetch a single bookmark."""
    try:
        bookmark = await db.get(BOOKMARKS, bookmark_id)
    except Exception:
        logger.exception("Failed to fetch bookmark id=%s", bookmark_id)
        raise HTTPException(status_code=500, detail="Failed to fetch bookmark")
    if bookmark is None:
        raise HTTPException(status_code=404, detail="Bookmark not found")
    return bookmark


@router.put("/{bookmark_id}", response_model=BookmarkOut)
async def update_bookmark(
    bookmark_id: UUID,
    payload: BookmarkIn,
    db: Database = Depends(get_database),
    titles: TitleService = Depends(get_title_service),
) -> dict:
    """Replace a bookmark's url, title and tags."""
    values = await _values(payload, titles)
    try:
        bookmark = await db.replace(BOOKMARKS, bookmark_id, values)
    except Exception:
        logger.exception("Failed to update bookmark id=%s", bookmark_id)
        raise HTTPException(status_code=500, detail="Failed to update bookmark")
    if bookmark is None:
        raise HTTPException(status_code=404, detail="Bookmark not found")
    return bookmark


@router.delete("/{bookmark_id}", status_code=204)
async def delete_bookmark(bookmark_id: UUID, db: Database = Depends(get_database)) -> Response:
    """Delete a bookmark.  Answers 204 whether or not it existed."""
    try:
        await db.delete(BOOKMARKS, bookmark_id)
    except Exception:
        logger.exception("Failed to delete bookmark id=%s", bookmark_id)
        raise HTTPException(status_code=500, detail="Failed to delete bookmark")
    return Response(status_code=204)
