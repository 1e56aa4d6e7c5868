"""
AI companion that answers questions about the user's notes.
Uses Anthropic Claude with every note of the user passed as context.
"""
import os
import logging
from typing import Dict, List, Optional

import anthropic

from smartnotes.errors import AssistantTransportFailure

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_MAX_TOKENS = 1000

NO_NOTES_ANSWER = (
    "You don't have any notes yet. Start taking notes and I'll be able to help "
    "you search through them!"
)

INSTRUCTION_FRAME = """You are a helpful AI assistant that helps users search through and understand their notes. Here are all the user's notes:

{notes}

Use these notes to answer questions. If you reference specific information, mention which date it came from. If the answer isn't in the notes, let them know politely."""

ACKNOWLEDGEMENT = (
    "I understand. I have access to your notes and will use them to answer your "
    "questions, referencing specific dates when relevant."
)


def render_notes_context(notes) -> str:
    """All notes as 'Date/Content' blocks separated by '---'."""
    blocks = []
    for note in notes:
        note_date = note.date.isoformat() if hasattr(note.date, "isoformat") else str(note.date)
        blocks.append(f"Date: {note_date}\nContent:\n{note.content or ''}")
    return "\n\n---\n\n".join(blocks)


def build_messages(notes, history: List[Dict[str, str]], question: str) -> List[Dict[str, str]]:
    """Instruction frame + acknowledgement, then prior turns verbatim, then the question."""
    messages = [
        {"role": "user", "content": INSTRUCTION_FRAME.format(notes=render_notes_context(notes))},
        {"role": "assistant", "content": ACKNOWLEDGEMENT},
    ]
    for turn in history:
        messages.append({"role": turn["role"], "content": turn["content"]})
    messages.append({"role": "user", "content": question})
    return messages


class NotesCompanion:
    """Answers questions grounded in one user's notes."""

    def __init__(self, client: Optional[anthropic.Anthropic] = None):
        if client is None:
            api_key = os.getenv("ANTHROPIC_API_KEY")
            if not api_key:
                raise ValueError("ANTHROPIC_API_KEY environment variable not set")
            client = anthropic.Anthropic(api_key=api_key)
        self.client = client
        self.model = os.getenv("ANTHROPIC_MODEL", DEFAULT_MODEL)
        self.max_tokens = int(os.getenv("ANTHROPIC_MAX_TOKENS", str(DEFAULT_MAX_TOKENS)))

    def answer(self, notes, history: List[Dict[str, str]], question: str) -> str:
        """
        Answer a question about the notes.

        Args:
            notes: Every note of the user (no retrieval filtering)
            history: Prior conversation turns, each {"role", "content"}
            question: The new question

        Returns:
            The answer text

        Raises:
            AssistantTransportFailure: the API call failed or returned no text
        """
        if not notes:
            return NO_NOTES_ANSWER

        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=build_messages(notes, history, question),
            )
        except anthropic.APIError as e:
            logger.error(f"Anthropic request failed: {e}")
            raise AssistantTransportFailure() from e

        answer = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        if not answer:
            logger.error("Anthropic response contained no text")
            raise AssistantTransportFailure("The assistant returned an empty answer")
        return answer
