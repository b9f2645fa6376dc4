"""Request-scoped access to the application context."""

from fastapi import Request

from chatapp.context import AppContext
from chatapp.conversation.manager import ConversationManager
from chatapp.sessions.store import SessionStore


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_manager(request: Request) -> ConversationManager:
    return get_context(request).manager


def get_store(request: Request) -> SessionStore:
    return get_context(request).store
