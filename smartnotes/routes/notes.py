"""
Notes API

JSON endpoints over the caller's notes. Only today's note (in the app
timezone) can be written; past notes are read-only.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from smartnotes.auth import get_current_user
from smartnotes.database import get_db
from smartnotes.models import User
from smartnotes.schemas import NoteOut, NoteSaveRequest
from smartnotes.services.note_store import NoteStore, parse_note_date
from smartnotes.template_config import today_local

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notes", tags=["notes"])


def get_note_store(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> NoteStore:
    return NoteStore(db, user)


def _parse_or_422(note_date: str):
    try:
        return parse_note_date(note_date)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("", response_model=List[NoteOut])
async def list_notes(store: NoteStore = Depends(get_note_store)):
    """All of the caller's notes, most recent day first."""
    return store.list()


@router.get("/search", response_model=List[NoteOut])
async def search_notes(
    q: str = Query("", description="Full-text query"),
    store: NoteStore = Depends(get_note_store),
):
    """Backend full-text search in relevance order. Fails with 503 when unavailable."""
    return store.full_text_search(q)


@router.get("/{note_date}", response_model=NoteOut)
async def get_note(note_date: str, store: NoteStore = Depends(get_note_store)):
    """Note for one day (YYYY-MM-DD)."""
    note = store.get_by_date(_parse_or_422(note_date))
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


@router.put("/{note_date}", response_model=NoteOut)
async def save_note(
    note_date: str,
    data: NoteSaveRequest,
    store: NoteStore = Depends(get_note_store),
):
    """Upsert today's note."""
    parsed = _parse_or_422(note_date)
    if parsed != today_local():
        raise HTTPException(status_code=403, detail="Past notes are read-only")
    return store.save(parsed, data.content)
