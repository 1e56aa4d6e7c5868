"""Add full-text search over note content

PostgreSQL: GIN index on to_tsvector('english', content).
SQLite: FTS5 shadow table plus sync triggers.

Revision ID: 002_add_notes_fulltext
Revises: 001_baseline
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op

from smartnotes.models.note import POSTGRES_FTS_DDL, SQLITE_FTS_DDL

# revision identifiers, used by Alembic.
revision: str = '002_add_notes_fulltext'
down_revision: Union[str, None] = '001_baseline'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    dialect = op.get_bind().dialect.name
    if dialect == 'postgresql':
        for statement in POSTGRES_FTS_DDL:
            op.execute(statement)
    elif dialect == 'sqlite':
        for statement in SQLITE_FTS_DDL:
            op.execute(statement)
        # Index notes that existed before the table
        op.execute("INSERT INTO notes_fts(notes_fts) VALUES ('rebuild')")


def downgrade() -> None:
    dialect = op.get_bind().dialect.name
    if dialect == 'postgresql':
        op.execute("DROP INDEX IF EXISTS ix_notes_content_fts")
    elif dialect == 'sqlite':
        for trigger in ('notes_fts_ai', 'notes_fts_au', 'notes_fts_ad'):
            op.execute(f"DROP TRIGGER IF EXISTS {trigger}")
        op.execute("DROP TABLE IF EXISTS notes_fts")
