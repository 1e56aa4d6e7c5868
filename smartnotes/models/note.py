"""
Note Model

One journal note per user per calendar day. (user_id, date) is the natural
key: saves upsert on it, so a day never holds more than one note.

Full-text search structures are created alongside the table:
- PostgreSQL: GIN index over to_tsvector('english', content)
- SQLite: FTS5 shadow table kept in sync by triggers
"""

from sqlalchemy import (
    Column, Integer, Text, DateTime, Date, ForeignKey, UniqueConstraint, DDL, event,
)
from sqlalchemy.orm import relationship
from smartnotes.database import Base
from smartnotes.template_config import utc_now


class Note(Base):
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date = Column(Date, nullable=False, index=True)
    content = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    # Relationship
    user = relationship("User", back_populates="notes")

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_notes_user_date"),
    )

    @property
    def date_str(self) -> str:
        return self.date.isoformat()

    def __repr__(self):
        return f"<Note {self.date} - user:{self.user_id}>"


# SQLite executes one statement per call, so each DDL is registered separately
SQLITE_FTS_DDL = [
    """
    CREATE VIRTUAL TABLE IF NOT EXISTS notes_fts USING fts5(
        content, content='notes', content_rowid='id',
        tokenize='unicode61 remove_diacritics 2'
    )
    """,
    """
    CREATE TRIGGER IF NOT EXISTS notes_fts_ai AFTER INSERT ON notes BEGIN
        INSERT INTO notes_fts(rowid, content) VALUES (new.id, new.content);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS notes_fts_au AFTER UPDATE ON notes BEGIN
        INSERT INTO notes_fts(notes_fts, rowid, content) VALUES ('delete', old.id, old.content);
        INSERT INTO notes_fts(rowid, content) VALUES (new.id, new.content);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS notes_fts_ad AFTER DELETE ON notes BEGIN
        INSERT INTO notes_fts(notes_fts, rowid, content) VALUES ('delete', old.id, old.content);
    END
    """,
]

POSTGRES_FTS_DDL = [
    "CREATE INDEX IF NOT EXISTS ix_notes_content_fts "
    "ON notes USING gin (to_tsvector('english', content))",
]

for _statement in SQLITE_FTS_DDL:
    event.listen(Note.__table__, "after_create", DDL(_statement).execute_if(dialect="sqlite"))

for _statement in POSTGRES_FTS_DDL:
    event.listen(Note.__table__, "after_create", DDL(_statement).execute_if(dialect="postgresql"))
