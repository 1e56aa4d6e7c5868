"""
Async HTTP client for a running Smart Notes server.

Implements the backend used by the client-side controllers (HybridSearch,
AutosaveController) and the `ask` call used by ChatSessionManager:

    async with NotesClient("http://localhost:8000") as client:
        await client.login("me@example.com", "secret")
        notes = await client.list()

Every failure, including a success status with an unreadable body, surfaces
as an error from smartnotes.errors.
"""

import logging
import os
from typing import Any, Callable, List, Optional

import httpx
from pydantic import ValidationError

from smartnotes.errors import (
    AssistantTransportFailure,
    SearchFailure,
    StorageFailure,
    Unauthenticated,
)
from smartnotes.schemas import AskResponse, NoteOut

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = os.getenv("SMARTNOTES_URL", "http://localhost:8000")


def _note_list(payload) -> List[NoteOut]:
    if not isinstance(payload, list):
        raise ValueError(f"expected a list of notes, got {type(payload).__name__}")
    return [NoteOut.model_validate(item) for item in payload]


class NotesClient:
    def __init__(self, base_url: str = DEFAULT_BASE_URL, client: Optional[httpx.AsyncClient] = None):
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=30.0)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    async def login(self, email: str, password: str):
        response = await self._client.post(
            "/login", data={"email": email, "password": password, "next": "/"}
        )
        # Success and failure both redirect; only success sets the session cookie
        if "session" not in self._client.cookies:
            raise Unauthenticated("Invalid email or password")
        logger.info(f"Signed in as {email} ({response.status_code})")

    async def list(self) -> List[NoteOut]:
        response = await self._request("GET", "/api/notes", StorageFailure)
        return self._decode(response, _note_list, StorageFailure)

    async def get_by_date(self, note_date: str) -> Optional[NoteOut]:
        try:
            response = await self._client.get(f"/api/notes/{note_date}")
        except httpx.HTTPError as e:
            raise StorageFailure() from e
        if response.status_code == 404:
            return None
        self._check(response, StorageFailure)
        return self._decode(response, NoteOut.model_validate, StorageFailure)

    async def save(self, note_date: str, content: str) -> NoteOut:
        response = await self._request(
            "PUT", f"/api/notes/{note_date}", StorageFailure, json={"content": content}
        )
        return self._decode(response, NoteOut.model_validate, StorageFailure)

    async def full_text_search(self, query: str) -> List[NoteOut]:
        response = await self._request(
            "GET", "/api/notes/search", SearchFailure, params={"q": query}
        )
        return self._decode(response, _note_list, SearchFailure)

    async def ask(self, question: str, history) -> str:
        payload = {
            "question": question,
            "conversationHistory": [
                {"role": turn.role, "content": turn.content} for turn in history
            ],
        }
        response = await self._request("POST", "/api/ai", AssistantTransportFailure, json=payload)
        answer = self._decode(response, AskResponse.model_validate, AssistantTransportFailure)
        return answer.answer

    async def _request(self, method: str, url: str, failure, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise failure() from e
        self._check(response, failure)
        return response

    def _check(self, response: httpx.Response, failure):
        if response.status_code == 401:
            raise Unauthenticated()
        if response.is_error:
            logger.error(f"{response.request.method} {response.request.url} -> {response.status_code}")
            raise failure(f"Server returned {response.status_code}")

    def _decode(self, response: httpx.Response, parse: Callable[[Any], Any], failure):
        try:
            return parse(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"Unreadable response from {response.request.url}: {e}")
            raise failure("Server returned an unreadable response") from e
