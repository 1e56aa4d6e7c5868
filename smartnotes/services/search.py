"""
Hybrid Search

Rules:
- Empty / whitespace query => full list (search mode "none")
- Trimmed query shorter than 5 characters => "client" mode: case-insensitive
  substring match on content or the YYYY-MM-DD date string, over the notes
  already loaded, keeping their order
- 5 characters or more => "server" mode: backend full-text search in relevance
  order; on failure, fall back to the client filter without raising

Input is debounced by 300ms. Each executed search gets a sequence number and
a response older than the last applied one is dropped.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from smartnotes.errors import SmartNotesError
from smartnotes.services.debounce import Debouncer
from smartnotes.services.local_notes import LocalNotes, note_date_str

logger = logging.getLogger(__name__)

SERVER_SEARCH_MIN_LENGTH = 5
SEARCH_DEBOUNCE_SECONDS = 0.3


class SearchMode(str, Enum):
    NONE = "none"
    CLIENT = "client"
    SERVER = "server"


@dataclass
class SearchResult:
    query: str
    mode: SearchMode
    notes: List = field(default_factory=list)
    fell_back: bool = False

    @property
    def count_label(self) -> str:
        """'3 results' while searching, empty when showing the full list."""
        if self.mode == SearchMode.NONE:
            return ""
        n = len(self.notes)
        return f"{n} result{'s' if n != 1 else ''}"

    @property
    def empty_message(self) -> str:
        return "No notes found" if self.mode != SearchMode.NONE else "No notes yet"


def search_mode_for(query: str) -> SearchMode:
    trimmed = (query or "").strip()
    if not trimmed:
        return SearchMode.NONE
    if len(trimmed) < SERVER_SEARCH_MIN_LENGTH:
        return SearchMode.CLIENT
    return SearchMode.SERVER


def client_filter(notes, query: str) -> List:
    """Notes whose content or date string contains the query, any case."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(notes)
    return [
        note for note in notes
        if needle in (note.content or "").lower() or needle in note_date_str(note).lower()
    ]


class HybridSearch:
    """Client-side search controller over a notes backend.

    `backend` provides async `list()` and `full_text_search(query)`;
    `local` is the note list already on screen.
    """

    def __init__(
        self,
        backend,
        local: LocalNotes,
        on_results: Optional[Callable[[SearchResult], None]] = None,
        notify: Optional[Callable[[str], None]] = None,
        delay: float = SEARCH_DEBOUNCE_SECONDS,
    ):
        self.backend = backend
        self.local = local
        self.on_results = on_results
        self.notify = notify
        self._debouncer = Debouncer(delay)
        self._seq = 0
        self._applied_seq = 0
        self.result: Optional[SearchResult] = None

    @property
    def mode(self) -> SearchMode:
        return self.result.mode if self.result else SearchMode.NONE

    def submit(self, query: str):
        """Debounced entry point, called on every keystroke."""
        return self._debouncer.trigger(self._run, query)

    async def clear(self) -> SearchResult:
        """Clear button: cancel any pending search and reset immediately."""
        self._debouncer.cancel()
        return await self.search("")

    async def flush(self):
        await self._debouncer.flush()

    async def _run(self, query: str):
        try:
            return await self.search(query)
        except SmartNotesError as e:
            logger.error(f"Search for {query!r} failed: {e}")
            if self.notify:
                self.notify(e.message)
            return None

    async def search(self, query: str) -> SearchResult:
        self._seq += 1
        seq = self._seq
        mode = search_mode_for(query)
        trimmed = (query or "").strip()
        started = self.local.revision

        if mode == SearchMode.NONE:
            notes = await self.backend.list()
            result = SearchResult(query=trimmed, mode=mode, notes=list(notes))
        elif mode == SearchMode.CLIENT:
            result = SearchResult(query=trimmed, mode=mode, notes=client_filter(self.local.notes, trimmed))
        else:
            try:
                notes = await self.backend.full_text_search(trimmed)
                result = SearchResult(query=trimmed, mode=mode, notes=list(notes))
            except Exception as e:
                logger.warning(f"Server search failed, filtering locally instead: {e}")
                result = SearchResult(
                    query=trimmed,
                    mode=mode,
                    notes=client_filter(self.local.notes, trimmed),
                    fell_back=True,
                )

        self._apply(seq, result, started)
        return result

    def _apply(self, seq: int, result: SearchResult, started: int):
        if seq < self._applied_seq:
            logger.debug(f"Dropping stale search result #{seq} for {result.query!r}")
            return
        self._applied_seq = seq
        if result.mode == SearchMode.NONE:
            # Notes saved while the list was in flight win over the fetched copy
            self.local.reconcile(result.notes, since=started)
            result.notes = self.local.notes
        self.result = result
        if self.on_results:
            self.on_results(result)
