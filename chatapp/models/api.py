"""
API Request/Response Models

Pydantic models for FastAPI endpoints.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from chatapp.llm.models import CompletionOptions
from chatapp.models.conversation import ConversationState, Message, Session


class ChatRequest(BaseModel):
    """Request model for chat endpoint."""

    message: str = Field(..., description="User's message (validated by the conversation manager)")
    model: str | None = Field(None, description="Optional model override")
    max_tokens: int | None = Field(None, gt=0, description="Optional max tokens override")
    temperature: float | None = Field(
        None, ge=0.0, le=2.0, description="Optional temperature override"
    )

    model_config = {
        "protected_namespaces": (),
        "json_schema_extra": {
            "example": {
                "message": "Explain recursion in one paragraph.",
                "model": None,
                "max_tokens": None,
                "temperature": None,
            }
        },
    }

    def options(self) -> CompletionOptions:
        return CompletionOptions(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )


class RetryRequest(BaseModel):
    """Request model for re-running the last completion round."""

    model: str | None = None
    max_tokens: int | None = Field(None, gt=0)
    temperature: float | None = Field(None, ge=0.0, le=2.0)

    model_config = {"protected_namespaces": ()}

    def options(self) -> CompletionOptions:
        return CompletionOptions(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )


class ChatResponse(BaseModel):
    """Response model for chat endpoint."""

    session_id: str = Field(..., description="Active session id")
    reply: Message = Field(..., description="Assistant reply")
    message_count: int = Field(..., description="Messages in the active conversation")


class ConversationResponse(BaseModel):
    """Current state of the active conversation."""

    session_id: str
    state: ConversationState
    messages: list[Message] = Field(default_factory=list)


class SessionSummary(BaseModel):
    """Sidebar entry for a saved session."""

    id: str
    title: str | None
    message_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_session(cls, session: Session) -> "SessionSummary":
        return cls(
            id=session.id,
            title=session.title,
            message_count=len(session.messages),
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


class LoadByTitleRequest(BaseModel):
    title: str = Field(..., min_length=1)


class NewSessionResponse(BaseModel):
    session_id: str


class SessionDeleteResponse(BaseModel):
    ok: bool = True
    deleted: bool


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    timestamp: str = Field(..., description="Current timestamp")
    api_key_configured: bool = Field(..., description="Whether a completion API key is set")


class ErrorResponse(BaseModel):
    """Error response body."""

    error: str = Field(..., description="Error code")
    message: str = Field(..., description="User-facing error message")
    recoverable: bool = Field(default=True, description="Whether the user can retry")
