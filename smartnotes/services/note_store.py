"""
Note Store Service

CRUD over one note per (user, date):
- save: upsert on the (user_id, date) natural key
- list: all of the caller's notes, most recent day first
- get_by_date: single note or None (not found is not an error)
- full_text_search: backend full-text search scoped to the caller

Every operation requires an authenticated user. Database errors are
re-raised as StorageFailure (or SearchFailure for full-text search).
"""

import logging
from datetime import date
from typing import Callable, List, Optional, Union

from sqlalchemy import func, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from smartnotes.errors import StorageFailure, SearchFailure, Unauthenticated
from smartnotes.models import Note, User
from smartnotes.template_config import utc_now

logger = logging.getLogger(__name__)


def parse_note_date(value: Union[str, date]) -> date:
    """Parse a YYYY-MM-DD string. Raises ValueError on anything else."""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValueError(f"Invalid note date: {value!r} (expected YYYY-MM-DD)")


def fts5_query(query: str) -> str:
    """Quote each term so FTS5 treats user input as plain words (implicit AND)."""
    terms = [t.replace('"', '""') for t in query.split()]
    return " ".join(f'"{t}"' for t in terms if t)


class NoteStore:
    """Notes owned by a single authenticated user."""

    def __init__(self, db: Session, user: Optional[User]):
        self.db = db
        self.user = user
        # Captured once: a rollback expires the User instance, and reloading it
        # would go through the session that just failed
        self.user_id = user.id if user is not None else None
        self._listeners: List[Callable[[Note], None]] = []

    def on_saved(self, listener: Callable[[Note], None]):
        """Register a refresh listener, called with the note after each save."""
        self._listeners.append(listener)

    def _require_user_id(self) -> int:
        if self.user_id is None:
            raise Unauthenticated()
        return self.user_id

    def save(self, note_date: Union[str, date], content: str) -> Note:
        user_id = self._require_user_id()
        note_date = parse_note_date(note_date)
        content = content or ""
        now = utc_now()

        values = {
            "user_id": user_id,
            "date": note_date,
            "content": content,
            "created_at": now,
            "updated_at": now,
        }

        try:
            dialect = self.db.get_bind().dialect.name
            if dialect == "postgresql":
                stmt = postgresql.insert(Note).values(**values)
            elif dialect == "sqlite":
                stmt = sqlite.insert(Note).values(**values)
            else:
                stmt = None

            if stmt is not None:
                stmt = stmt.on_conflict_do_update(
                    index_elements=["user_id", "date"],
                    set_={"content": content, "updated_at": now},
                )
                self.db.execute(stmt)
            else:
                # Find existing or create new
                note = self._find(user_id, note_date)
                if note:
                    note.content = content
                else:
                    self.db.add(Note(**values))
            self.db.commit()

            note = self._find(user_id, note_date)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Saving note {note_date} for user {user_id} failed: {e}")
            raise StorageFailure() from e

        logger.info(f"Saved note {note_date} for user {user_id} ({len(content)} chars)")
        for listener in self._listeners:
            listener(note)
        return note

    def list(self) -> List[Note]:
        user_id = self._require_user_id()
        try:
            return (
                self.db.query(Note)
                .filter(Note.user_id == user_id)
                .order_by(Note.date.desc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Listing notes for user {user_id} failed: {e}")
            raise StorageFailure() from e

    def get_by_date(self, note_date: Union[str, date]) -> Optional[Note]:
        user_id = self._require_user_id()
        note_date = parse_note_date(note_date)
        try:
            return self._find(user_id, note_date)
        except SQLAlchemyError as e:
            logger.error(f"Loading note {note_date} for user {user_id} failed: {e}")
            raise StorageFailure() from e

    def full_text_search(self, query: str) -> List[Note]:
        """Search the caller's notes with the backend full-text index.

        Results come back in relevance order (best match first).
        """
        user_id = self._require_user_id()
        query = (query or "").strip()
        if not query:
            return []

        try:
            dialect = self.db.get_bind().dialect.name
            if dialect == "postgresql":
                vector = func.to_tsvector("english", Note.content)
                ts_query = func.plainto_tsquery("english", query)
                return (
                    self.db.query(Note)
                    .filter(Note.user_id == user_id, vector.op("@@")(ts_query))
                    .order_by(func.ts_rank(vector, ts_query).desc(), Note.date.desc())
                    .all()
                )
            if dialect == "sqlite":
                match = fts5_query(query)
                if not match:
                    return []
                stmt = text(
                    "SELECT notes.id FROM notes "
                    "JOIN notes_fts ON notes_fts.rowid = notes.id "
                    "WHERE notes_fts MATCH :match AND notes.user_id = :user_id "
                    "ORDER BY bm25(notes_fts), notes.date DESC"
                )
                ids = self.db.execute(stmt, {"match": match, "user_id": user_id}).scalars().all()
                if not ids:
                    return []
                by_id = {
                    note.id: note
                    for note in self.db.query(Note).filter(Note.id.in_(ids)).all()
                }
                return [by_id[i] for i in ids if i in by_id]
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Full-text search failed for user {user_id}: {e}")
            raise SearchFailure() from e

        raise SearchFailure(f"Full-text search is not supported on {dialect}")

    def _find(self, user_id: int, note_date: date) -> Optional[Note]:
        return (
            self.db.query(Note)
            .filter(Note.user_id == user_id, Note.date == note_date)
            .first()
        )
