"""
Journal page

The single-page view: sidebar of notes (with search) and the editor for the
selected day (read-only unless it is today). The floating assistant dialog
posts to /api/ai.
"""

from datetime import timedelta

from fastapi import APIRouter, Request, Depends, Form, Query
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from smartnotes.auth import get_current_user, get_current_user_optional
from smartnotes.database import get_db
from smartnotes.errors import SearchFailure
from smartnotes.services.autosave import note_preview, word_count
from smartnotes.services.chat_sessions import ERROR_REPLY, PLACEHOLDER_REPLY
from smartnotes.services.note_store import NoteStore, parse_note_date
from smartnotes.services.search import SearchMode, SearchResult, client_filter, search_mode_for
from smartnotes.template_config import templates, today_local

router = APIRouter(tags=["journal"])


@router.get("/", response_class=HTMLResponse)
async def journal(
    request: Request,
    db: Session = Depends(get_db),
    date: str = Query(None, description="Date in YYYY-MM-DD format"),
    q: str = Query("", description="Sidebar search"),
):
    """Journal page for a given date (defaults to today)."""
    user = get_current_user_optional(request, db)
    if not user:
        return RedirectResponse(url="/login", status_code=303)

    actual_today = today_local()
    try:
        selected_date = parse_note_date(date) if date else actual_today
    except ValueError:
        selected_date = actual_today

    store = NoteStore(db, user)
    notes = store.list()
    current = next((n for n in notes if n.date == selected_date), None)
    content = current.content if current else ""

    # Without JavaScript the sidebar search runs server-side with the same policy
    mode = search_mode_for(q)
    if mode == SearchMode.SERVER:
        try:
            listed = store.full_text_search(q.strip())
        except SearchFailure:
            listed = client_filter(notes, q)
    elif mode == SearchMode.CLIENT:
        listed = client_filter(notes, q)
    else:
        listed = notes
    result = SearchResult(query=q.strip(), mode=mode, notes=listed)

    return templates.TemplateResponse(request, "journal/index.html", {
        "user": user,
        "today": actual_today,
        "selected_date": selected_date,
        "is_today": selected_date == actual_today,
        "prev_date": (selected_date - timedelta(days=1)).isoformat(),
        "next_date": (selected_date + timedelta(days=1)).isoformat(),
        "content": content,
        "word_count": word_count(content),
        "search": result,
        "preview": note_preview,
        "assistant_placeholder": PLACEHOLDER_REPLY,
        "assistant_error": ERROR_REPLY,
    })


@router.post("/notes/{note_date}")
async def save_from_form(
    request: Request,
    note_date: str,
    content: str = Form(""),
    db: Session = Depends(get_db),
):
    """Form fallback for the editor. Past days stay read-only."""
    user = get_current_user(request, db)
    try:
        parsed = parse_note_date(note_date)
    except ValueError:
        return RedirectResponse(url="/", status_code=303)

    if parsed == today_local():
        NoteStore(db, user).save(parsed, content)
    return RedirectResponse(url=f"/?date={parsed.isoformat()}", status_code=303)
