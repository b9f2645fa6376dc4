"""Session persistence for chat history."""

from .store import DEFAULT_STORE_KEY, SessionStore, derive_title

__all__ = ["DEFAULT_STORE_KEY", "SessionStore", "derive_title"]
