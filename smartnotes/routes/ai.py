"""
AI companion endpoint.

Answers a question about the caller's notes, with the prior turns of the
current chat session passed along as conversation history.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from smartnotes.ai_companion import NotesCompanion
from smartnotes.auth import get_current_user
from smartnotes.database import get_db
from smartnotes.errors import AssistantTransportFailure
from smartnotes.models import User
from smartnotes.schemas import AskRequest, AskResponse
from smartnotes.services.note_store import NoteStore

router = APIRouter(prefix="/api", tags=["ai"])


def get_companion() -> NotesCompanion:
    try:
        return NotesCompanion()
    except ValueError as e:
        raise AssistantTransportFailure(str(e))


@router.post("/ai", response_model=AskResponse)
def ask_ai(
    data: AskRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    companion: NotesCompanion = Depends(get_companion),
):
    """Answer a question grounded in all of the caller's notes."""
    notes = NoteStore(db, user).list()
    history = [turn.model_dump() for turn in data.conversation_history]
    answer = companion.answer(notes, history, data.question)
    return {"answer": answer}
