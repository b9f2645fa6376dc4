"""Active conversation management."""

from .manager import ConversationManager

__all__ = ["ConversationManager"]
