"""Storage utilities for persisted chat sessions."""

from __future__ import annotations

import itertools
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from chatapp.config import ConversationSettings, StorageSettings
from chatapp.errors import PersistenceError
from chatapp.models.conversation import Message, Role, Session, utcnow

logger = logging.getLogger(__name__)

DEFAULT_STORE_KEY = "chatHistory"
DEFAULT_TITLE_LENGTH = 30
TITLE_ELLIPSIS = "..."


def derive_title(messages: list[Message], max_length: int = DEFAULT_TITLE_LENGTH) -> str | None:
    """Title from the first user message, or None when there is none."""
    first_user = next((msg for msg in messages if msg.role is Role.USER), None)
    if first_user is None:
        return None
    title = first_user.content[:max_length]
    if len(first_user.content) > max_length:
        title += TITLE_ELLIPSIS
    return title


class SessionStore:
    """
    Persist chat sessions in a single JSON record on disk.

    The file holds ``{store_key: [session, ...]}`` ordered by recency, most
    recent first. Every save rewrites the whole record. Persistence is best
    effort: write failures are logged and never raised to the caller.
    """

    def __init__(
        self,
        path: Path | str,
        store_key: str = DEFAULT_STORE_KEY,
        title_max_length: int = DEFAULT_TITLE_LENGTH,
    ) -> None:
        self._path = Path(path)
        self._store_key = store_key
        self._title_max_length = title_max_length
        self._sessions: list[Session] = []
        self._chat_counter = itertools.count(1)

    @classmethod
    def from_settings(
        cls,
        storage: StorageSettings,
        conversation: ConversationSettings | None = None,
    ) -> SessionStore:
        return cls(
            path=storage.path,
            store_key=storage.store_key,
            title_max_length=(
                conversation.title_max_length if conversation is not None else DEFAULT_TITLE_LENGTH
            ),
        )

    @property
    def path(self) -> Path:
        return self._path

    def __len__(self) -> int:
        return len(self._sessions)

    def load(self) -> list[Session]:
        """
        Read the full store from disk.

        A missing file yields an empty store. Unreadable or malformed content
        yields an empty store and a warning; this method never raises.
        """
        self._sessions = []
        if not self._path.exists():
            logger.info("No saved sessions found", extra={"path": str(self._path)})
            return self.list()

        try:
            with open(self._path, "r", encoding="utf-8") as handle:
                document = json.load(handle)
        except (OSError, ValueError) as exc:
            logger.warning(
                f"Failed to load chat history: {exc}",
                extra={"path": str(self._path)},
            )
            return self.list()

        records = document.get(self._store_key) if isinstance(document, dict) else None
        if not isinstance(records, list):
            logger.warning(
                "Chat history has an unexpected shape; starting empty",
                extra={"path": str(self._path), "store_key": self._store_key},
            )
            return self.list()

        seen: set[str] = set()
        for index, record in enumerate(records):
            try:
                session = Session.model_validate(record)
            except PydanticValidationError as exc:
                logger.warning(
                    f"Skipping malformed session record at index {index}",
                    extra={"path": str(self._path), "errors": exc.error_count()},
                )
                continue
            if session.id in seen:
                continue
            seen.add(session.id)
            self._sessions.append(session)

        logger.info(
            f"Loaded {len(self._sessions)} saved sessions",
            extra={"path": str(self._path)},
        )
        return self.list()

    def save(self, session: Session) -> Session:
        """
        Upsert a session by id and rewrite the store.

        An existing session is overwritten in place; a new one is inserted at
        the front. A missing title is derived from the messages.

        Returns:
            Copy of the session as stored
        """
        stored = session.model_copy(
            update={
                "title": session.title or self.derive_title(session.messages),
                "messages": list(session.messages),
                "updated_at": utcnow(),
            }
        )

        index = self._index_of(stored.id)
        if index is None:
            self._sessions.insert(0, stored)
        else:
            self._sessions[index] = stored

        try:
            self._write()
        except PersistenceError as exc:
            logger.error(
                f"Failed to save chat history: {exc.message}",
                extra={"session_id": stored.id, **exc.context},
            )

        return self._copy(stored)

    def delete(self, session_id: str) -> bool:
        """Remove a session. Returns False when the id is unknown."""
        index = self._index_of(session_id)
        if index is None:
            return False
        del self._sessions[index]
        try:
            self._write()
        except PersistenceError as exc:
            logger.error(
                f"Failed to save chat history: {exc.message}",
                extra={"session_id": session_id, **exc.context},
            )
        return True

    def list(self, limit: int | None = None) -> list[Session]:
        """Sessions in recency order, most recent first."""
        sessions = self._sessions if limit is None else self._sessions[: max(0, limit)]
        return [self._copy(session) for session in sessions]

    def find_by_id(self, session_id: str) -> Session | None:
        index = self._index_of(session_id)
        return None if index is None else self._copy(self._sessions[index])

    def find_by_title(self, title: str) -> Session | None:
        for session in self._sessions:
            if session.title == title:
                return self._copy(session)
        return None

    def derive_title(self, messages: list[Message]) -> str:
        """First user message (truncated), else "Chat N" from a running counter."""
        title = derive_title(messages, self._title_max_length)
        if title is not None:
            return title
        return f"Chat {next(self._chat_counter)}"

    def _index_of(self, session_id: str) -> int | None:
        for index, session in enumerate(self._sessions):
            if session.id == session_id:
                return index
        return None

    def _serialize(self) -> dict[str, Any]:
        return {
            self._store_key: [session.model_dump(mode="json") for session in self._sessions]
        }

    def _write(self) -> None:
        """Replace the store file atomically with the current session list."""
        tmp_name: str | None = None
        try:
            payload = json.dumps(self._serialize(), indent=2, ensure_ascii=False)
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self._path)
            tmp_name = None
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(
                str(exc) or exc.__class__.__name__,
                context={"path": str(self._path)},
            ) from exc
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    @staticmethod
    def _copy(session: Session) -> Session:
        return session.model_copy(update={"messages": list(session.messages)})
