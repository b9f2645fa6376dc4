"""
Conversation Manager

Owns the active message sequence for the session being edited, applies the
outbound context-window policy, drives completion rounds and tells the
session store when to persist.

Usage:
    manager = ConversationManager(client=provider, store=store, settings=settings.conversation)
    reply = await manager.submit_user_message("Hello")
"""

import logging
from collections.abc import Sequence
from datetime import datetime

from chatapp.config import ConversationSettings
from chatapp.errors import BusyError, ChatError, NotFoundError, ValidationError
from chatapp.llm.base import BaseLLMProvider
from chatapp.llm.models import CompletionOptions
from chatapp.models.conversation import (
    ConversationExport,
    ConversationState,
    ConversationStats,
    Message,
    Role,
    Session,
    new_session_id,
    utcnow,
)
from chatapp.sessions.store import SessionStore

logger = logging.getLogger(__name__)


class ConversationManager:
    """
    Tracks one active conversation and its completion rounds.

    State machine: IDLE -> SENDING while a completion round is outstanding,
    back to IDLE on success or failure. Submissions arriving while SENDING
    are rejected (return None); nothing is queued.

    Attributes:
        client: Completion provider used for every round
        store: Session store used for auto-save and session switching
        settings: Context-window, preamble and input-length policy
    """

    def __init__(
        self,
        client: BaseLLMProvider,
        store: SessionStore,
        settings: ConversationSettings | None = None,
    ):
        self.client = client
        self.store = store
        self.settings = settings or ConversationSettings()

        self._messages: list[Message] = []
        self._session_id = new_session_id()
        self._created_at: datetime = utcnow()
        self._state = ConversationState.IDLE

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def state(self) -> ConversationState:
        return self._state

    @property
    def is_sending(self) -> bool:
        return self._state is ConversationState.SENDING

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def validate_user_message(self, text: str) -> str:
        """
        Return the trimmed message or raise ValidationError.

        Raises:
            ValidationError: reason "empty" or "too_long"
        """
        cleaned = (text or "").strip()
        if not cleaned:
            raise ValidationError("empty")
        limit = self.settings.max_message_length
        if len(cleaned) > limit:
            raise ValidationError("too_long", limit=limit, context={"length": len(cleaned)})
        return cleaned

    async def submit_user_message(
        self,
        text: str,
        options: CompletionOptions | None = None,
    ) -> Message | None:
        """
        Append a user message and run a completion round.

        Args:
            text: Raw user input
            options: Optional per-request model/max_tokens/temperature overrides

        Returns:
            The assistant reply, or None when a round is already in flight

        Raises:
            ValidationError: Empty or too long input (nothing is mutated)
            CompletionError: The round failed; the user message stays in history
        """
        if self.is_sending:
            logger.warning(
                "Rejected submission while a response is pending",
                extra={"session_id": self._session_id},
            )
            return None

        content = self.validate_user_message(text)
        self._messages.append(Message(role=Role.USER, content=content))
        logger.info(
            "User message accepted",
            extra={"session_id": self._session_id, "message_count": len(self._messages)},
        )
        return await self._run_turn(options)

    async def complete_turn(self, options: CompletionOptions | None = None) -> Message | None:
        """
        Run a completion round over the current history.

        Used directly to retry after a failed round without resubmitting.
        Returns None when a round is already in flight.
        """
        if self.is_sending:
            logger.warning(
                "Rejected retry while a response is pending",
                extra={"session_id": self._session_id},
            )
            return None
        return await self._run_turn(options)

    async def _run_turn(self, options: CompletionOptions | None) -> Message:
        self._state = ConversationState.SENDING
        try:
            outbound = self.ensure_system_preamble(self.build_outbound_sequence())
            logger.debug(
                "Sending completion request",
                extra={
                    "session_id": self._session_id,
                    "history_length": len(self._messages),
                    "outbound_length": len(outbound),
                },
            )
            try:
                reply = await self.client.send(outbound, options)
            except ChatError as exc:
                logger.error(
                    f"Completion round failed: {exc.message}",
                    extra={"session_id": self._session_id, "error_type": exc.code},
                )
                raise

            self._messages.append(reply)
            self.save_current()
            return reply
        finally:
            self._state = ConversationState.IDLE

    # ------------------------------------------------------------------
    # Outbound policy
    # ------------------------------------------------------------------

    def build_outbound_sequence(self) -> list[Message]:
        """
        History to send, bounded by the context-window policy.

        Above ``max_conversation_length`` messages only the most recent
        ``keep_recent_messages`` are kept. Older messages are dropped silently.
        """
        if len(self._messages) <= self.settings.max_conversation_length:
            return list(self._messages)
        return self._messages[-self.settings.keep_recent_messages:]

    def ensure_system_preamble(self, sequence: Sequence[Message]) -> list[Message]:
        """Prepend the configured system message unless one already leads."""
        if sequence and sequence[0].role is Role.SYSTEM:
            return list(sequence)
        return [Message(role=Role.SYSTEM, content=self.settings.system_message), *sequence]

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def save_current(self) -> Session | None:
        """Persist the active conversation. No-op while it is empty."""
        if not self._messages:
            return None
        return self.store.save(
            Session(
                id=self._session_id,
                messages=list(self._messages),
                created_at=self._created_at,
            )
        )

    def start_new_session(self) -> str:
        """Persist the current conversation if any, then start an empty one."""
        self._ensure_idle("start_new_session")
        if self._messages:
            self.save_current()
        self._reset()
        logger.info("Started new session", extra={"session_id": self._session_id})
        return self._session_id

    def load_session(self, session_id: str) -> Session:
        """
        Make a saved session the active conversation.

        Raises:
            BusyError: A completion round is pending
            NotFoundError: Unknown id; the active conversation is unchanged
        """
        self._ensure_idle("load_session")
        if self._messages and self._session_id != session_id:
            self.save_current()

        session = self.store.find_by_id(session_id)
        if session is None:
            logger.warning("Session not found", extra={"session_id": session_id})
            raise NotFoundError(session_id)

        self._activate(session)
        return session

    def load_session_by_title(self, title: str) -> Session:
        """Load the first saved session carrying ``title``."""
        session = self.store.find_by_title(title)
        if session is None:
            raise NotFoundError(title, context={"title": title})
        return self.load_session(session.id)

    def recent_sessions(self, limit: int | None = None) -> list[Session]:
        return self.store.list(limit or self.settings.recent_sessions_limit)

    def clear_conversation(self) -> str:
        """Drop the active conversation without saving it."""
        self._ensure_idle("clear_conversation")
        self._reset()
        logger.info("Conversation cleared", extra={"session_id": self._session_id})
        return self._session_id

    def _ensure_idle(self, operation: str) -> None:
        # A pending round appends its reply to whatever conversation is active
        if self.is_sending:
            logger.warning(
                f"Rejected {operation} while a response is pending",
                extra={"session_id": self._session_id},
            )
            raise BusyError(context={"operation": operation})

    def _activate(self, session: Session) -> None:
        self._messages = list(session.messages)
        self._session_id = session.id
        self._created_at = session.created_at
        logger.info(
            "Session loaded",
            extra={"session_id": session.id, "message_count": len(self._messages)},
        )

    def _reset(self) -> None:
        self._messages = []
        self._session_id = new_session_id()
        self._created_at = utcnow()

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def export_conversation(self) -> ConversationExport:
        return ConversationExport(session_id=self._session_id, messages=list(self._messages))

    def get_stats(self) -> ConversationStats:
        return ConversationStats(
            user_messages=sum(1 for msg in self._messages if msg.role is Role.USER),
            assistant_messages=sum(1 for msg in self._messages if msg.role is Role.ASSISTANT),
            total_messages=len(self._messages),
            total_characters=sum(len(msg.content) for msg in self._messages),
        )
