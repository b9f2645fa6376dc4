"""
Conversation Models

Pydantic models shared by the conversation manager, the session store,
the completion client and every presentation layer.
"""

import uuid
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Author of a message. The only role vocabulary used anywhere."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


def display_sender(role: Role) -> str:
    """Map a role to the sender label a chat view renders ("user" or "bot")."""
    return "user" if Role(role) is Role.USER else "bot"


class Message(BaseModel):
    """Single message in a conversation. Immutable once created."""

    role: Role
    content: str

    model_config = ConfigDict(frozen=True)

    def to_payload(self) -> dict[str, str]:
        """Wire format expected by chat completion endpoints."""
        return {"role": self.role.value, "content": self.content}


class ConversationState(str, Enum):
    """Manager state. A submit is only accepted while idle."""

    IDLE = "idle"
    SENDING = "sending"


def new_session_id() -> str:
    return f"chat-{uuid.uuid4().hex}"


def utcnow() -> datetime:
    return datetime.now(UTC)


class Session(BaseModel):
    """A named, persisted conversation."""

    id: str = Field(default_factory=new_session_id, min_length=1)
    title: str | None = Field(
        default=None,
        description="Derived from the first user message when left empty",
    )
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ConversationStats(BaseModel):
    """Counters over the active conversation."""

    user_messages: int = 0
    assistant_messages: int = 0
    total_messages: int = 0
    total_characters: int = 0


class ConversationExport(BaseModel):
    """Downloadable snapshot of the active conversation."""

    timestamp: datetime = Field(default_factory=utcnow)
    session_id: str
    messages: list[Message] = Field(default_factory=list)
