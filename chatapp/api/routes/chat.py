"""
Chat Routes

FastAPI endpoints for the active conversation.
"""

import logging

from fastapi import APIRouter, Depends

from chatapp.api.deps import get_manager
from chatapp.conversation.manager import ConversationManager
from chatapp.errors import BusyError
from chatapp.models.api import ChatRequest, ChatResponse, ConversationResponse, RetryRequest
from chatapp.models.conversation import ConversationExport, ConversationStats, Message

logger = logging.getLogger(__name__)

router = APIRouter()


def _chat_response(manager: ConversationManager, reply: Message) -> ChatResponse:
    return ChatResponse(
        session_id=manager.session_id,
        reply=reply,
        message_count=len(manager.messages),
    )


@router.post("/chat", response_model=ChatResponse)
async def chat(
    chat_request: ChatRequest,
    manager: ConversationManager = Depends(get_manager),
) -> ChatResponse:
    """
    Submit a user message and return the assistant reply.

    Validation and completion failures are turned into error responses by
    the application's ChatError handler. A submission while another one is
    pending is rejected with 409.
    """
    logger.info(f"Chat request received: {chat_request.message[:100]}")
    reply = await manager.submit_user_message(chat_request.message, chat_request.options())
    if reply is None:
        raise BusyError()
    return _chat_response(manager, reply)


@router.post("/chat/retry", response_model=ChatResponse)
async def retry(
    retry_request: RetryRequest | None = None,
    manager: ConversationManager = Depends(get_manager),
) -> ChatResponse:
    """Re-run the completion round over the current history."""
    options = retry_request.options() if retry_request else None
    reply = await manager.complete_turn(options)
    if reply is None:
        raise BusyError()
    return _chat_response(manager, reply)


@router.get("/conversation", response_model=ConversationResponse)
async def get_conversation(
    manager: ConversationManager = Depends(get_manager),
) -> ConversationResponse:
    """Active session id, state and messages."""
    return ConversationResponse(
        session_id=manager.session_id,
        state=manager.state,
        messages=list(manager.messages),
    )


@router.delete("/conversation", response_model=ConversationResponse)
async def clear_conversation(
    manager: ConversationManager = Depends(get_manager),
) -> ConversationResponse:
    """Discard the active conversation without saving it."""
    manager.clear_conversation()
    return ConversationResponse(session_id=manager.session_id, state=manager.state)


@router.get("/conversation/export", response_model=ConversationExport)
async def export_conversation(
    manager: ConversationManager = Depends(get_manager),
) -> ConversationExport:
    """Snapshot of the active conversation for download."""
    return manager.export_conversation()


@router.get("/conversation/stats", response_model=ConversationStats)
async def conversation_stats(
    manager: ConversationManager = Depends(get_manager),
) -> ConversationStats:
    """Message and character counts for the active conversation."""
    return manager.get_stats()
