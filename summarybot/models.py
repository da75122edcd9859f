
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequest(CamelModel):
    user_message: str = Field("", description="Raw user input")
    type: Optional[str] = Field(None, description='"email" to also draft a formal email reply')

    @property
    def wants_email(self) -> bool:
        return self.type == "email"


class ChatResponse(CamelModel):
    success: bool = True
    user_message: str
    bot_reply: str
    summary: str
    email_reply: Optional[str] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationRecord(CamelModel):
    """One persisted user/bot exchange. Never mutated after insert."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_message: str = Field(..., min_length=1)
    bot_reply: str = Field(..., min_length=1)
    summary: str = Field(..., min_length=1)
    email_reply: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


class MessagesPage(CamelModel):
    success: bool = True
    total_messages: int
    current_page: int
    total_pages: int
    messages: List[ConversationRecord] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: Optional[str] = None
