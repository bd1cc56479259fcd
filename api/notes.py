"""Note endpoints.

Every datastore failure is caught here and answered with a static 500
message; the details only go to the log.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from api.database import Database
from api.deps import get_database
from api.query import FilterSpec
from api.schemas import ErrorOut, NoteIn, NoteList, NoteOut
from api.tables import NOTES

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/notes",
    tags=["notes"],
    responses={400: {"model": ErrorOut}, 404: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)


@router.post("", response_model=NoteOut, status_code=201)
async def create_note(payload: NoteIn, db: Database = Depends(get_database)) -> dict:
    """Create a note."""
    try:
        note = await db.create(NOTES, payload.model_dump())
    except Exception:
        logger.exception("Failed to create note")
        raise HTTPException(status_code=500, detail="Failed to create note")
    logger.info("Created note id=%s tags=%s", note["id"], note["tags"])
    return note


@router.get("", response_model=NoteList)
async def list_notes(
    q: Optional[str] = Query(None, description="Full-text search term"),
    tags: Optional[str] = Query(None, description="Comma separated tags, all required"),
    limit: Optional[int] = Query(None, ge=1, le=100, description="Newest N notes"),
    db: Database = Depends(get_database),
) -> dict:
    """List notes, optionally filtered by search term and tags."""
    spec = FilterSpec.from_params(q, tags)
    try:
        notes = await db.find(NOTES, spec, limit=limit)
    except Exception:
        logger.exception("Failed to fetch notes q=%r tags=%r", q, tags)
        raise HTTPException(status_code=500, detail="Failed to fetch notes")
    return {"count": len(notes), "items": notes}


@router.get("/{note_id}", response_model=NoteOut)
async def get_note(note_id: UUID, db: Database = Depends(get_database)) -> dict:
    """Fetch a single note."""
    try:
        note = await db.get(NOTES, note_id)
    except Exception:
        logger.exception("Failed to fetch note id=%s", note_id)
        raise HTTPException(status_code=500, detail="Failed to fetch note")
    if note is None:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


@router.put("/{note_id}", response_model=NoteOut)
async def update_note(
    note_id: UUID, payload: NoteIn, db: Database = Depends(get_database)
) -> dict:
    """Replace a note's title, content and tags."""
    try:
        note = await db.replace(NOTES, note_id, payload.model_dump())
    except Exception:
        logger.exception("Failed to update note id=%s", note_id)
        raise HTTPException(status_code=500, detail="Failed to update note")
    if note is None:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


@router.delete("/{note_id}", status_code=204)
async def delete_note(note_id: UUID, db: Database = Depends(get_database)) -> Response:
    """Delete a note.  Answers 204 whether or not it existed."""
    try:
        await db.delete(NOTES, note_id)
    except Exception:
        logger.exception("Failed to delete note id=%s", note_id)
        raise HTTPException(status_code=500, detail="Failed to delete note")
    return Response(status_code=204)
