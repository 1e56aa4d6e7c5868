"""
Unit tests for the note store service.

Tests:
- Upsert on (user, date): one note per day holding the latest content
- List ordering (most recent day first) and ownership scoping
- Lookup by date (not found is None, not an error)
- Full-text search scoping and failure reporting
- Error taxonomy (Unauthenticated, StorageFailure, SearchFailure)
"""

import pytest
from datetime import date
from unittest.mock import patch
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from smartnotes.errors import SearchFailure, StorageFailure, Unauthenticated
from smartnotes.models import Note
from smartnotes.services.note_store import NoteStore, fts5_query, parse_note_date


class TestSave:
    """Tests for NoteStore.save."""

    def test_creates_note(self, store):
        """First save for a day creates the note."""
        note = store.save("2024-01-01", "Hello")
        assert note.date == date(2024, 1, 1)
        assert note.content == "Hello"
        assert note.created_at is not None

    def test_second_save_updates_in_place(self, store, db):
        """Saving the same day twice keeps one note with the latest content."""
        store.save("2024-01-01", "Hello")
        store.save("2024-01-01", "Hello world")

        notes = db.query(Note).filter(Note.date == date(2024, 1, 1)).all()
        assert len(notes) == 1
        assert notes[0].content == "Hello world"

    def test_same_day_for_two_users(self, db, user, other_user):
        """The natural key includes the user: two users keep separate notes."""
        NoteStore(db, user).save("2024-01-01", "mine")
        NoteStore(db, other_user).save("2024-01-01", "theirs")

        assert NoteStore(db, user).get_by_date("2024-01-01").content == "mine"
        assert NoteStore(db, other_user).get_by_date("2024-01-01").content == "theirs"

    def test_empty_content_allowed(self, store):
        """An empty note is still a note."""
        note = store.save("2024-01-01", "")
        assert note.content == ""

    def test_accepts_date_objects(self, store):
        note = store.save(date(2024, 3, 5), "x")
        assert note.date_str == "2024-03-05"

    def test_invalid_date_rejected(self, store):
        with pytest.raises(ValueError):
            store.save("01/02/2024", "x")

    def test_requires_user(self, db):
        """No identity, no save."""
        with pytest.raises(Unauthenticated):
            NoteStore(db, None).save("2024-01-01", "x")

    def test_notifies_listeners(self, store):
        """Saves emit a refresh signal with the saved note."""
        seen = []
        store.on_saved(seen.append)
        note = store.save("2024-01-01", "Hello")
        assert seen == [note]

    def test_backend_error_is_storage_failure(self, store):
        """Database errors surface as StorageFailure."""
        error = OperationalError("INSERT", {}, Exception("disk I/O error"))
        with patch.object(store.db, "execute", side_effect=error):
            with pytest.raises(StorageFailure):
                store.save("2024-01-01", "Hello")


class TestList:
    """Tests for NoteStore.list."""

    def test_empty(self, store):
        assert store.list() == []

    def test_most_recent_first(self, store):
        store.save("2024-01-02", "b")
        store.save("2024-01-10", "c")
        store.save("2023-12-31", "a")

        assert [n.date_str for n in store.list()] == ["2024-01-10", "2024-01-02", "2023-12-31"]

    def test_only_own_notes(self, db, user, other_user):
        NoteStore(db, other_user).save("2024-01-01", "theirs")
        assert NoteStore(db, user).list() == []

    def test_requires_user(self, db):
        with pytest.raises(Unauthenticated):
            NoteStore(db, None).list()


class TestGetByDate:
    """Tests for NoteStore.get_by_date."""

    def test_found(self, store):
        store.save("2024-01-01", "Hello")
        assert store.get_by_date("2024-01-01").content == "Hello"

    def test_not_found_is_none(self, store):
        assert store.get_by_date("2024-01-01") is None

    def test_other_users_note_not_visible(self, db, user, other_user):
        NoteStore(db, other_user).save("2024-01-01", "theirs")
        assert NoteStore(db, user).get_by_date("2024-01-01") is None

    def test_storage_error_is_not_not_found(self, store):
        """A broken query raises instead of pretending the note is missing."""
        error = OperationalError("SELECT", {}, Exception("no such table"))
        with patch.object(store.db, "query", side_effect=error):
            with pytest.raises(StorageFailure):
                store.get_by_date("2024-01-01")


class TestFullTextSearch:
    """Tests for the backend full-text search."""

    def test_finds_matching_words(self, store):
        store.save("2024-01-01", "We decided to use Redis for caching")
        store.save("2024-01-02", "Lunch with the team")

        results = store.full_text_search("redis")
        assert [n.date_str for n in results] == ["2024-01-01"]

    def test_all_terms_must_match(self, store):
        store.save("2024-01-01", "Redis caching decision")
        store.save("2024-01-02", "Redis cluster outage")

        results = store.full_text_search("redis decision")
        assert [n.date_str for n in results] == ["2024-01-01"]

    def test_sees_updated_content(self, store):
        """The index follows upserts."""
        store.save("2024-01-01", "draft about postgres")
        store.save("2024-01-01", "final about sqlite")

        assert store.full_text_search("postgres") == []
        assert [n.date_str for n in store.full_text_search("sqlite")] == ["2024-01-01"]

    def test_scoped_to_caller(self, db, user, other_user):
        NoteStore(db, other_user).save("2024-01-01", "secret project falcon")
        assert NoteStore(db, user).full_text_search("falcon") == []

    def test_blank_query(self, store):
        store.save("2024-01-01", "anything")
        assert store.full_text_search("   ") == []

    def test_query_syntax_is_escaped(self, store):
        """Quotes and operators in user input do not break the query."""
        store.save("2024-01-01", 'she said "hello" AND left')
        results = store.full_text_search('"hello" AND')
        assert [n.date_str for n in results] == ["2024-01-01"]

    def test_backend_error_is_search_failure(self, store):
        """Database errors during search surface as SearchFailure, not raw driver errors."""
        error = OperationalError("SELECT", {}, Exception("database is locked"))
        with patch.object(store.db, "execute", side_effect=error):
            with pytest.raises(SearchFailure):
                store.full_text_search("hello world")

    def test_failed_search_then_failed_save(self, store):
        """A rollback from one failure does not turn the next failure into a raw error."""
        error = OperationalError("SELECT", {}, Exception("disk I/O error"))
        with patch.object(store.db, "execute", side_effect=error):
            with pytest.raises(SearchFailure):
                store.full_text_search("hello world")
            with pytest.raises(StorageFailure):
                store.save("2024-01-01", "Hello")

    def test_missing_index_is_search_failure(self, store, db):
        store.save("2024-01-01", "Hello world")
        for trigger in ("notes_fts_ai", "notes_fts_au", "notes_fts_ad"):
            db.execute(text(f"DROP TRIGGER {trigger}"))
        db.execute(text("DROP TABLE notes_fts"))
        db.commit()

        with pytest.raises(SearchFailure):
            store.full_text_search("hello world")


class TestHelpers:
    def test_parse_note_date(self):
        assert parse_note_date("2024-02-29") == date(2024, 2, 29)
        assert parse_note_date(" 2024-02-29 ") == date(2024, 2, 29)

    def test_parse_note_date_invalid(self):
        with pytest.raises(ValueError):
            parse_note_date("2023-02-29")

    def test_fts5_query_quotes_terms(self):
        assert fts5_query('redis "cache"') == '"redis" """cache"""'


class TestErrorTaxonomy:
    def test_default_message(self):
        assert StorageFailure().message == "Could not save or load notes"
        assert str(SearchFailure()) == "Full-text search is unavailable"

    def test_custom_message(self):
        assert StorageFailure("disk full").message == "disk full"

    def test_status_codes(self):
        assert (Unauthenticated.status_code, StorageFailure.status_code, SearchFailure.status_code) == (
            401, 500, 503,
        )
