"""
Tests for hybrid search.

Tests the rules:
1. Empty / whitespace query => full list, mode "none"
2. Trimmed query under 5 characters => local substring filter on content or date
3. 5+ characters => backend full-text search, falling back to the local filter
4. Input is debounced; stale responses are dropped
"""

import asyncio
import pytest
from datetime import date

from conftest import FakeNotesBackend, make_note
from smartnotes.errors import SearchFailure, StorageFailure
from smartnotes.services.autosave import AutosaveController
from smartnotes.services.local_notes import LocalNotes
from smartnotes.services.search import (
    HybridSearch,
    SearchMode,
    SearchResult,
    client_filter,
    search_mode_for,
    SEARCH_DEBOUNCE_SECONDS,
    SERVER_SEARCH_MIN_LENGTH,
)


NOTES = [
    make_note("2024-01-03", "Decided to use Redis for the cache"),
    make_note("2024-01-02", "met Bob for lunch"),
    make_note("2023-12-31", "New year plans"),
]


def _search(notes=NOTES, **kwargs):
    backend = FakeNotesBackend(notes)
    local = LocalNotes(notes)
    return HybridSearch(backend, local, delay=0.01, **kwargs), backend, local


class TestSearchMode:
    """Tests for the length thresholds."""

    def test_constants(self):
        assert SERVER_SEARCH_MIN_LENGTH == 5
        assert SEARCH_DEBOUNCE_SECONDS == 0.3

    def test_empty_is_none(self):
        assert search_mode_for("") == SearchMode.NONE
        assert search_mode_for("   ") == SearchMode.NONE
        assert search_mode_for(None) == SearchMode.NONE

    def test_short_is_client(self):
        assert search_mode_for("b") == SearchMode.CLIENT
        assert search_mode_for("bob!") == SearchMode.CLIENT

    def test_length_is_measured_after_trimming(self):
        assert search_mode_for("  abcd   ") == SearchMode.CLIENT

    def test_five_or_more_is_server(self):
        assert search_mode_for("redis") == SearchMode.SERVER
        assert search_mode_for("redis cache") == SearchMode.SERVER


class TestClientFilter:
    """Tests for the local substring filter."""

    def test_case_insensitive_content_match(self):
        """'bob' matches 'met Bob'."""
        assert client_filter(NOTES, "bob") == [NOTES[1]]

    def test_matches_date_string(self):
        assert client_filter(NOTES, "2023") == [NOTES[2]]
        assert client_filter(NOTES, "01-0") == [NOTES[0], NOTES[1]]

    def test_exact_subset(self):
        """Every qualifying note is returned and nothing else."""
        query = "e"
        expected = [n for n in NOTES if "e" in n.content.lower() or "e" in n.date_str]
        assert client_filter(NOTES, query) == expected

    def test_preserves_order(self):
        result = client_filter(NOTES, "2")
        assert [n.date_str for n in result] == ["2024-01-03", "2024-01-02", "2023-12-31"]

    def test_no_match(self):
        assert client_filter(NOTES, "zzz") == []


class TestHybridSearch:
    """Tests for the search controller."""

    @pytest.mark.asyncio
    async def test_empty_query_lists_all(self):
        search, backend, local = _search()
        backend.notes["2024-01-04"] = make_note("2024-01-04", "fresh from server")

        result = await search.search("  ")

        assert result.mode == SearchMode.NONE
        assert result.notes == await backend.list()
        assert [n.date_str for n in local.notes][0] == "2024-01-04"
        assert result.count_label == ""

    @pytest.mark.asyncio
    async def test_short_query_stays_local(self):
        """Example: 'bob' is client mode and returns the 'met Bob' note."""
        search, backend, _ = _search()

        result = await search.search("bob")

        assert result.mode == SearchMode.CLIENT
        assert [n.date_str for n in result.notes] == ["2024-01-02"]
        assert backend.search_calls == []
        assert backend.list_calls == 0

    @pytest.mark.asyncio
    async def test_long_query_uses_backend_order(self):
        search, backend, _ = _search()
        backend.search_results = [NOTES[2], NOTES[0]]

        result = await search.search("  plans cache ")

        assert result.mode == SearchMode.SERVER
        assert backend.search_calls == ["plans cache"]
        assert result.notes == [NOTES[2], NOTES[0]]
        assert not result.fell_back

    @pytest.mark.asyncio
    async def test_backend_failure_falls_back_to_local_filter(self):
        search, backend, local = _search()
        backend.search_error = SearchFailure()

        result = await search.search("Redis")

        assert result.mode == SearchMode.SERVER
        assert result.fell_back
        assert result.notes == client_filter(local.notes, "Redis")

    @pytest.mark.asyncio
    async def test_any_backend_error_falls_back(self):
        search, backend, _ = _search()
        backend.search_error = RuntimeError("connection reset")

        result = await search.search("lunch")

        assert [n.date_str for n in result.notes] == ["2024-01-02"]

    @pytest.mark.asyncio
    async def test_results_callback(self):
        seen = []
        search, _, _ = _search(on_results=seen.append)

        await search.search("bob")

        assert len(seen) == 1
        assert seen[0].count_label == "1 result"

    @pytest.mark.asyncio
    async def test_submit_is_debounced(self):
        """Only the last query typed inside the window runs."""
        seen = []
        search, backend, _ = _search(on_results=seen.append)

        for partial in ("r", "re", "red", "redi", "redis"):
            search.submit(partial)
        await search.flush()

        assert backend.search_calls == ["redis"]
        assert [r.query for r in seen] == ["redis"]

    @pytest.mark.asyncio
    async def test_clear_resets_immediately(self):
        search, backend, _ = _search()
        search.submit("redis")

        result = await search.clear()
        await asyncio.sleep(0.05)

        assert result.mode == SearchMode.NONE
        assert backend.search_calls == []
        assert search.mode == SearchMode.NONE

    @pytest.mark.asyncio
    async def test_stale_response_is_dropped(self):
        """A slow older search landing after a newer one does not win."""
        release = asyncio.Event()

        class SlowBackend(FakeNotesBackend):
            async def full_text_search(self, query):
                if query == "first query":
                    await release.wait()
                return [NOTES[0]] if query == "first query" else [NOTES[2]]

        backend = SlowBackend(NOTES)
        search = HybridSearch(backend, LocalNotes(NOTES), delay=0.01)

        slow = asyncio.ensure_future(search.search("first query"))
        await asyncio.sleep(0)
        newer = await search.search("second query")
        release.set()
        stale = await slow

        assert stale.notes == [NOTES[0]]
        assert search.result is newer
        assert search.result.notes == [NOTES[2]]

    @pytest.mark.asyncio
    async def test_reset_keeps_note_saved_while_listing(self):
        """An autosave landing during a reset's list() survives the reset."""
        release = asyncio.Event()

        class GatedList(FakeNotesBackend):
            async def list(self):
                snapshot = await super().list()
                await release.wait()
                return snapshot

        notes = [make_note("2024-01-03", "old")]
        backend = GatedList(notes)
        backend.notes["2024-01-02"] = make_note("2024-01-02", "added elsewhere")
        local = LocalNotes(notes)
        search = HybridSearch(backend, local, delay=0.01)
        editor = AutosaveController(backend, local, today=lambda: date(2024, 1, 3), delay=0.01)

        reset = asyncio.ensure_future(search.search(""))
        await asyncio.sleep(0)
        editor.edit("new text")
        await editor.flush()
        assert local.get("2024-01-03").content == "new text"

        release.set()
        result = await reset

        assert local.get("2024-01-03").content == "new text"
        assert local.get("2024-01-02").content == "added elsewhere"
        assert [n.content for n in result.notes] == ["new text", "added elsewhere"]

    @pytest.mark.asyncio
    async def test_list_failure_is_reported(self):
        notices = []
        search, backend, _ = _search(notify=notices.append)

        async def broken_list():
            raise StorageFailure()

        backend.list = broken_list
        search.submit("")
        await search.flush()

        assert notices == [StorageFailure.default_message]


class TestSearchResult:
    def test_count_label(self):
        assert SearchResult("x", SearchMode.CLIENT, [1, 2]).count_label == "2 results"
        assert SearchResult("x", SearchMode.SERVER, []).count_label == "0 results"

    def test_empty_message(self):
        assert SearchResult("", SearchMode.NONE).empty_message == "No notes yet"
        assert SearchResult("bob", SearchMode.CLIENT).empty_message == "No notes found"
