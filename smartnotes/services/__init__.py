from smartnotes.services.note_store import (
    NoteStore,
    parse_note_date,
)
from smartnotes.services.local_notes import LocalNotes
from smartnotes.services.search import (
    HybridSearch,
    SearchMode,
    SearchResult,
    client_filter,
    search_mode_for,
)
from smartnotes.services.autosave import (
    AutosaveController,
    SaveStatus,
    note_preview,
    word_count,
)
from smartnotes.services.chat_sessions import (
    ChatSessionManager,
    InMemoryChatLogStore,
    JsonFileChatLogStore,
)

__all__ = [
    'NoteStore',
    'parse_note_date',
    'LocalNotes',
    'HybridSearch',
    'SearchMode',
    'SearchResult',
    'client_filter',
    'search_mode_for',
    'AutosaveController',
    'SaveStatus',
    'note_preview',
    'word_count',
    'ChatSessionManager',
    'InMemoryChatLogStore',
    'JsonFileChatLogStore',
]
