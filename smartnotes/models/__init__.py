from smartnotes.models.user import User
from smartnotes.models.note import Note

__all__ = [
    "User",
    "Note",
]
