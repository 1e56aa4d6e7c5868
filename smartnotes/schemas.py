"""Request/response shapes shared by the JSON API and the API client."""
from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class NoteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    content: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def date_str(self) -> str:
        return self.date.isoformat()


class NoteSaveRequest(BaseModel):
    content: str = ""


class ConversationTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class AskRequest(BaseModel):
    question: str
    # camelCase on the wire, matching the browser client
    conversation_history: List[ConversationTurn] = Field(
        default_factory=list, alias="conversationHistory"
    )

    model_config = ConfigDict(populate_by_name=True)


class AskResponse(BaseModel):
    answer: str


class Credentials(BaseModel):
    email: str
    password: str
