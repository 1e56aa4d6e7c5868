"""
Error taxonomy for Smart Notes.

- Unauthenticated: no verified identity, every operation refuses
- StorageFailure: note read/write failed, surfaced to the user, never retried
- SearchFailure: server-side full-text search failed, recovered by falling
  back to the local substring filter
- AssistantTransportFailure: the assistant call failed, converted into an
  in-conversation message by the chat session manager
"""

from typing import Optional


class SmartNotesError(Exception):
    """Base class for application errors."""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class Unauthenticated(SmartNotesError):
    status_code = 401
    default_message = "Not authenticated"


class StorageFailure(SmartNotesError):
    status_code = 500
    default_message = "Could not save or load notes"


class SearchFailure(SmartNotesError):
    status_code = 503
    default_message = "Full-text search is unavailable"


class AssistantTransportFailure(SmartNotesError):
    status_code = 502
    default_message = "The assistant could not be reached"
