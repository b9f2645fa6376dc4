"""Routes for persisted chat sessions."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from chatapp.api.deps import get_manager, get_store
from chatapp.conversation.manager import ConversationManager
from chatapp.errors import NotFoundError
from chatapp.models.api import (
    ConversationResponse,
    LoadByTitleRequest,
    NewSessionResponse,
    SessionDeleteResponse,
    SessionSummary,
)
from chatapp.models.conversation import Session
from chatapp.sessions.store import SessionStore

logger = logging.getLogger(__name__)
router = APIRouter()


def _loaded(manager: ConversationManager) -> ConversationResponse:
    return ConversationResponse(
        session_id=manager.session_id,
        state=manager.state,
        messages=list(manager.messages),
    )


@router.get("/sessions", response_model=list[SessionSummary])
async def list_sessions(
    limit: int | None = Query(None, ge=1, le=200),
    manager: ConversationManager = Depends(get_manager),
) -> list[SessionSummary]:
    """List recently saved sessions, most recent first."""
    return [SessionSummary.from_session(session) for session in manager.recent_sessions(limit)]


@router.post("/sessions", response_model=NewSessionResponse)
async def new_session(
    manager: ConversationManager = Depends(get_manager),
) -> NewSessionResponse:
    """Save the active conversation (if any) and start an empty one."""
    return NewSessionResponse(session_id=manager.start_new_session())


@router.post("/sessions/by-title/load", response_model=ConversationResponse)
async def load_session_by_title(
    payload: LoadByTitleRequest,
    manager: ConversationManager = Depends(get_manager),
) -> ConversationResponse:
    """Make the first saved session with this title the active conversation."""
    manager.load_session_by_title(payload.title)
    return _loaded(manager)


@router.get("/sessions/{session_id}", response_model=Session)
async def get_session(
    session_id: str,
    store: SessionStore = Depends(get_store),
) -> Session:
    """Return one saved session."""
    session = store.find_by_id(session_id)
    if session is None:
        raise NotFoundError(session_id)
    return session


@router.post("/sessions/{session_id}/load", response_model=ConversationResponse)
async def load_session(
    session_id: str,
    manager: ConversationManager = Depends(get_manager),
) -> ConversationResponse:
    """Make a saved session the active conversation."""
    manager.load_session(session_id)
    return _loaded(manager)


@router.delete("/sessions/{session_id}", response_model=SessionDeleteResponse)
async def delete_session(
    session_id: str,
    store: SessionStore = Depends(get_store),
) -> SessionDeleteResponse:
    """Delete one saved session by id."""
    deleted = store.delete(session_id)
    logger.info("Session delete requested", extra={"session_id": session_id, "deleted": deleted})
    return SessionDeleteResponse(ok=True, deleted=deleted)
