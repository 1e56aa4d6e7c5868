"""
Autosave Controller

Status machine: saved -> saving -> saved | error (starts at "saved").

- Only today's note is writable. Edits to any other day are rejected and
  never start a save.
- Every accepted edit (re)starts a 500ms debounce timer; only the latest edit
  inside the window is persisted.
- A successful save is merged into the local note list by date. The list is
  not re-fetched.
- A failed save moves to "error" and raises a notice. It is not retried.
"""

import logging
from enum import Enum
from typing import Callable, Optional

from smartnotes.errors import SmartNotesError
from smartnotes.services.debounce import Debouncer
from smartnotes.services.local_notes import LocalNotes
from smartnotes.template_config import today_local

logger = logging.getLogger(__name__)

AUTOSAVE_DEBOUNCE_SECONDS = 0.5
PREVIEW_LENGTH = 50


class SaveStatus(str, Enum):
    SAVED = "saved"
    SAVING = "saving"
    ERROR = "error"


STATUS_LABELS = {
    SaveStatus.SAVED: "Saved",
    SaveStatus.SAVING: "Saving...",
    SaveStatus.ERROR: "Error",
}


def word_count(content: str) -> int:
    return len((content or "").split())


def note_preview(content: str) -> str:
    """Sidebar preview: first 50 characters, or 'Empty note'."""
    return (content or "")[:PREVIEW_LENGTH] or "Empty note"


class AutosaveController:
    """Editor state for the note of one date at a time."""

    def __init__(
        self,
        backend,
        local: LocalNotes,
        notify: Optional[Callable[[str], None]] = None,
        today: Callable = today_local,
        delay: float = AUTOSAVE_DEBOUNCE_SECONDS,
    ):
        self.backend = backend
        self.local = local
        self.notify = notify
        self._today = today
        self._debouncer = Debouncer(delay)
        self._seq = 0
        self._merged_seq = 0

        self.status = SaveStatus.SAVED
        self.current_date = self._today().isoformat()
        self.content = self._cached_content(self.current_date)

    @property
    def writable(self) -> bool:
        return self.current_date == self._today().isoformat()

    @property
    def status_label(self) -> str:
        return STATUS_LABELS[self.status]

    @property
    def word_count(self) -> int:
        return word_count(self.content)

    def open(self, note_date: str) -> str:
        """Switch the editor to another day and load its content from the local list."""
        self.current_date = note_date
        self.content = self._cached_content(note_date)
        return self.content

    def edit(self, content: str) -> bool:
        """Content-change event. Returns False when the note is read-only."""
        if not self.writable:
            logger.debug(f"Ignoring edit to read-only note {self.current_date}")
            return False

        self.content = content
        self.status = SaveStatus.SAVING
        self._debouncer.trigger(self._save, self.current_date, content)
        return True

    async def flush(self):
        """Wait for the pending save (if any) to run."""
        await self._debouncer.flush()

    async def _save(self, note_date: str, content: str):
        self._seq += 1
        seq = self._seq

        try:
            note = await self.backend.save(note_date, content)
        except Exception as e:
            # Any failure, not only the error taxonomy, ends the save in "error"
            log = logger.error if isinstance(e, SmartNotesError) else logger.exception
            log(f"Autosave of {note_date} failed: {e}")
            if self._is_latest(seq):
                self.status = SaveStatus.ERROR
                if self.notify:
                    self.notify("Failed to save note")
            return None

        if seq > self._merged_seq:
            self._merged_seq = seq
            self.local.merge(note)
        if self._is_latest(seq):
            self.status = SaveStatus.SAVED
        return note

    def _is_latest(self, seq: int) -> bool:
        # A newer edit is still waiting or a newer save already started
        return seq == self._seq and not self._debouncer.pending

    def _cached_content(self, note_date: str) -> str:
        note = self.local.get(note_date)
        return note.content if note is not None else ""
