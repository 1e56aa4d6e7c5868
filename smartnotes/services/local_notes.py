"""
Locally held note list for the client-side controllers.

Kept in date-descending order. Autosave merges saved notes into it by date
instead of re-fetching the list. A fetched list is reconciled against the
merges made while it was in flight, so a slow list response can never clobber
a note saved in the meantime. Search filters over it.
"""

from datetime import date
from typing import Dict, Iterable, List, Optional


def note_date_str(note) -> str:
    value = note.date
    return value.isoformat() if isinstance(value, date) else str(value)


class LocalNotes:
    def __init__(self, notes: Iterable = ()):
        self._notes: List = []
        # date -> revision of its last merge
        self._merged_at: Dict[str, int] = {}
        self.revision = 0
        self.replace(notes)

    @property
    def notes(self) -> List:
        return list(self._notes)

    def __len__(self):
        return len(self._notes)

    def replace(self, notes: Iterable):
        self._notes = sorted(notes, key=note_date_str, reverse=True)

    def get(self, note_date: str) -> Optional[object]:
        for note in self._notes:
            if note_date_str(note) == note_date:
                return note
        return None

    def merge(self, note):
        """Update the note with the same date, or insert it at its date position."""
        key = note_date_str(note)
        self.revision += 1
        self._merged_at[key] = self.revision
        for i, existing in enumerate(self._notes):
            existing_key = note_date_str(existing)
            if existing_key == key:
                self._notes[i] = note
                return
            if existing_key < key:
                self._notes.insert(i, note)
                return
        self._notes.append(note)

    def reconcile(self, notes: Iterable, since: int):
        """Adopt a fetched list, keeping every note merged after revision `since`."""
        fetched = {note_date_str(note): note for note in notes}
        for key, merged_at in self._merged_at.items():
            if merged_at > since:
                kept = self.get(key)
                if kept is not None:
                    fetched[key] = kept
        self.replace(fetched.values())
