"""Shared test fixtures and configuration.

Points the app at an in-memory SQLite database before any smartnotes import,
and provides a logged-in TestClient plus a fake async notes backend for the
client-side controllers.
"""

import os

# Patch env vars BEFORE any smartnotes imports
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-sessions-0123456789")
os.environ.setdefault("ANTHROPIC_API_KEY", "fake-anthropic-key-for-tests")
os.environ.setdefault("APP_TIMEZONE", "UTC")

from datetime import date, datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from smartnotes.database import get_db, init_db
from smartnotes.schemas import NoteOut

PASSWORD = "correct-horse"


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database (FTS5 included) per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def user(db):
    from smartnotes.auth import create_user
    return create_user(db, "me@example.com", PASSWORD)


@pytest.fixture
def other_user(db):
    from smartnotes.auth import create_user
    return create_user(db, "someone@example.com", PASSWORD)


@pytest.fixture
def store(db, user):
    from smartnotes.services.note_store import NoteStore
    return NoteStore(db, user)


@pytest.fixture
def app(session_factory):
    """The FastAPI app wired to the per-test database."""
    from smartnotes.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def logged_in(client, user):
    """TestClient with a session cookie for `user`."""
    response = client.post(
        "/login",
        data={"email": user.email, "password": PASSWORD, "next": "/"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert "session" in client.cookies
    return client


def make_note(day: str, content: str) -> NoteOut:
    stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return NoteOut(date=date.fromisoformat(day), content=content, created_at=stamp, updated_at=stamp)


class FakeNotesBackend:
    """In-memory stand-in for NotesClient."""

    def __init__(self, notes=()):
        self.notes = {n.date_str: n for n in notes}
        self.save_calls = []
        self.list_calls = 0
        self.search_calls = []
        self.save_error = None
        self.search_error = None
        self.search_results = None

    async def list(self):
        self.list_calls += 1
        return sorted(self.notes.values(), key=lambda n: n.date_str, reverse=True)

    async def save(self, note_date, content):
        self.save_calls.append((note_date, content))
        if self.save_error:
            raise self.save_error
        note = make_note(note_date, content)
        self.notes[note_date] = note
        return note

    async def full_text_search(self, query):
        self.search_calls.append(query)
        if self.search_error:
            raise self.search_error
        if self.search_results is not None:
            return list(self.search_results)
        return [n for n in self.notes.values() if query.lower() in n.content.lower()]


@pytest.fixture
def backend():
    return FakeNotesBackend()
