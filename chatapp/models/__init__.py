"""Shared data models."""

from chatapp.models.conversation import (
    ConversationExport,
    ConversationState,
    ConversationStats,
    Message,
    Role,
    Session,
    display_sender,
)

__all__ = [
    "ConversationExport",
    "ConversationState",
    "ConversationStats",
    "Message",
    "Role",
    "Session",
    "display_sender",
]
