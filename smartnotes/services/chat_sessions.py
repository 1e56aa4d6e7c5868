"""
Chat Session Manager

Conversation threads with the assistant, scoped to the current calendar day.

The day's threads live in a DailyChatLog kept in client-side storage (a
ChatLogStore). Reading it enforces:
- stored shape/version must validate, otherwise start over empty
- stored date must equal today, otherwise start over empty (day rollover)

Session lifecycle:
- no session is created until a message is actually sent
- a current session idle for 2 hours or more is dropped on dialog open and
  never resumed automatically
- the assistant's placeholder reply is replaced in place by the answer, or by
  an error message when the assistant cannot be reached
"""

import json
import logging
import uuid
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from smartnotes.errors import SmartNotesError
from smartnotes.template_config import today_local, utc_now

logger = logging.getLogger(__name__)

CHAT_LOG_VERSION = 1
SESSION_IDLE_TIMEOUT = timedelta(hours=2)
TITLE_MAX_LENGTH = 40
PLACEHOLDER_REPLY = "Searching through your notes..."
ERROR_REPLY = "Sorry, there was an error processing your question."
DEFAULT_TITLE = "New chat"


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatSession(BaseModel):
    id: str
    title: str = DEFAULT_TITLE
    messages: List[ChatMessage] = Field(default_factory=list)
    created_at: datetime
    last_active_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now - self.last_active_at >= SESSION_IDLE_TIMEOUT


class DailyChatLog(BaseModel):
    version: Literal[1] = CHAT_LOG_VERSION
    date: date
    current_session_id: Optional[str] = None
    sessions: Dict[str, ChatSession] = Field(default_factory=dict)


def make_title(question: str) -> str:
    question = question.strip()
    if len(question) > TITLE_MAX_LENGTH:
        return question[:TITLE_MAX_LENGTH] + "..."
    return question


# -----------------------------
# Client-side storage
# -----------------------------

class InMemoryChatLogStore:
    """Holds the raw chat log in memory (tests, single-process clients)."""

    def __init__(self, data: Optional[dict] = None):
        self.data = data

    def load(self) -> Optional[dict]:
        return self.data

    def save(self, data: dict):
        self.data = data


class JsonFileChatLogStore:
    """Persists the raw chat log as a JSON file."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> Optional[dict]:
        if not self.path.exists():
            return None
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable chat log at {self.path}, starting fresh: {e}")
            return None

    def save(self, data: dict):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# -----------------------------
# Session manager
# -----------------------------

AskFn = Callable[[str, List[ChatMessage]], Awaitable[str]]


class ChatSessionManager:
    """Drives the assistant dialog.

    `ask(question, history)` is the assistant call; it raises
    AssistantTransportFailure when the assistant cannot be reached.
    """

    def __init__(
        self,
        store,
        ask: AskFn,
        notify: Optional[Callable[[str], None]] = None,
        now: Callable[[], datetime] = utc_now,
        today: Callable[[], date] = today_local,
        new_id: Callable[[], str] = lambda: uuid.uuid4().hex,
    ):
        self.store = store
        self.ask = ask
        self.notify = notify
        self._now = now
        self._today = today
        self._new_id = new_id
        self._log: Optional[DailyChatLog] = None

    @property
    def log(self) -> DailyChatLog:
        """Today's chat log, reset on day rollover or unreadable storage."""
        today = self._today()
        if self._log is None:
            self._log = self._load(today)
        elif self._log.date != today:
            logger.info(f"Chat log rolled over from {self._log.date} to {today}")
            self._log = self._fresh(today)
        return self._log

    @property
    def current_session(self) -> Optional[ChatSession]:
        log = self.log
        if log.current_session_id is None:
            return None
        return log.sessions.get(log.current_session_id)

    def list_sessions(self) -> List[ChatSession]:
        """Today's sessions, most recently active first."""
        return sorted(self.log.sessions.values(), key=lambda s: s.last_active_at, reverse=True)

    def open_dialog(self) -> Optional[ChatSession]:
        """Called when the dialog opens. Drops an expired or missing current session."""
        log = self.log
        if log.current_session_id is not None:
            session = log.sessions.get(log.current_session_id)
            if session is None or session.is_expired(self._now()):
                log.current_session_id = None
                self._persist()
        return self.current_session

    def start_new_chat(self):
        self.log.current_session_id = None
        self._persist()

    def select_session(self, session_id: str) -> ChatSession:
        log = self.log
        if session_id not in log.sessions:
            raise KeyError(session_id)
        log.current_session_id = session_id
        self._persist()
        return log.sessions[session_id]

    def delete_session(self, session_id: str, confirmed: bool = False) -> bool:
        """Remove a session. Nothing happens unless the user confirmed."""
        if not confirmed:
            return False
        log = self.log
        if log.sessions.pop(session_id, None) is None:
            return False
        if log.current_session_id == session_id:
            log.current_session_id = None
        self._persist()
        return True

    async def send(self, question: str) -> Optional[ChatSession]:
        question = (question or "").strip()
        if not question:
            return None

        log = self.log
        now = self._now()
        session = self.current_session
        if session is None:
            session = ChatSession(id=self._new_id(), created_at=now, last_active_at=now)
            log.sessions[session.id] = session
            log.current_session_id = session.id

        history = [message.model_copy() for message in session.messages]
        if not session.messages:
            session.title = make_title(question)
        session.messages.append(ChatMessage(role="user", content=question))
        session.messages.append(ChatMessage(role="assistant", content=PLACEHOLDER_REPLY))
        placeholder_index = len(session.messages) - 1
        session.last_active_at = now
        self._persist()

        try:
            answer = await self.ask(question, history)
        except Exception as e:
            # The placeholder is always replaced, whatever the failure
            log = logger.error if isinstance(e, SmartNotesError) else logger.exception
            log(f"Assistant request failed: {e}")
            answer = ERROR_REPLY
            if self.notify:
                self.notify("Failed to get a response from the assistant")

        session.messages[placeholder_index] = ChatMessage(role="assistant", content=answer)
        self._persist()
        return session

    def _load(self, today: date) -> DailyChatLog:
        raw = self.store.load()
        if raw is None:
            return self._fresh(today)
        try:
            log = DailyChatLog.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Discarding malformed chat log: {e.error_count()} error(s)")
            return self._fresh(today)
        if log.date != today:
            logger.info(f"Discarding chat log from {log.date}")
            return self._fresh(today)
        return log

    def _fresh(self, today: date) -> DailyChatLog:
        log = DailyChatLog(date=today)
        self.store.save(log.model_dump(mode="json"))
        return log

    def _persist(self):
        if self._log is not None:
            self.store.save(self._log.model_dump(mode="json"))
