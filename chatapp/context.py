"""
Application Context

Explicit container for the long-lived components. Built once at process
start and handed to whichever layer needs it (HTTP app, CLI).
"""

import logging
from dataclasses import dataclass

from chatapp.config import Settings, get_settings
from chatapp.conversation.manager import ConversationManager
from chatapp.llm.base import BaseLLMProvider
from chatapp.llm.openrouter import OpenRouterProvider
from chatapp.sessions.store import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    store: SessionStore
    client: BaseLLMProvider
    manager: ConversationManager

    async def aclose(self) -> None:
        """Persist the active conversation and release the client."""
        self.manager.save_current()
        try:
            await self.client.close()
        except Exception as e:
            logger.error(f"Error closing completion client: {e}")


def build_context(
    settings: Settings | None = None,
    client: BaseLLMProvider | None = None,
    store: SessionStore | None = None,
) -> AppContext:
    """
    Wire settings, store, client and manager together.

    The store is loaded from disk before the manager is created.
    """
    if settings is None:
        settings = get_settings()
    if store is None:
        store = SessionStore.from_settings(settings.storage, settings.conversation)
    store.load()
    if client is None:
        client = OpenRouterProvider.from_settings(settings.llm)
    manager = ConversationManager(client=client, store=store, settings=settings.conversation)

    logger.info(
        "Application context ready",
        extra={"saved_sessions": len(store), "provider": client.provider_name},
    )
    return AppContext(settings=settings, store=store, client=client, manager=manager)
