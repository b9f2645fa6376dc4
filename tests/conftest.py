"""
Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import asyncio
import logging

import pytest

from chatapp.config import ConversationSettings
from chatapp.conversation.manager import ConversationManager
from chatapp.llm.base import BaseLLMProvider
from chatapp.llm.models import LLMRequest, LLMResponse, LLMUsage
from chatapp.models.conversation import Message, Role
from chatapp.sessions.store import SessionStore

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires API keys and external services)",
    )


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (may require external services)"
    )
    config.addinivalue_line("markers", "unit: mark test as unit test (default)")


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless explicitly enabled."""
    if config.getoption("--run-integration"):
        return
    skip_integration = pytest.mark.skip(
        reason="Integration tests disabled (use --run-integration to enable)."
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def configure_test_logging(caplog):
    """
    Configure logging for tests.

    Sets up log capture and configures log levels.
    This fixture runs automatically for all tests.
    """
    caplog.set_level(logging.DEBUG)
    yield
    # The CLI group silences logging process-wide
    logging.disable(logging.NOTSET)
    for logger_name in ("chatapp", "httpx", "openai", "asyncio"):
        logging.getLogger(logger_name).setLevel(logging.NOTSET)


# ============================================================================
# Environment and Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """
    Keep tests away from real keys, .env files and the user's chat history.

    Runs automatically for all tests.
    """
    from chatapp.config import get_settings

    get_settings.cache_clear()
    monkeypatch.setenv("CHATAPP_ENV_SOURCE", "environment")
    monkeypatch.delenv("LLM_OPENROUTER_API_KEY", raising=False)
    monkeypatch.setenv("STORAGE_PATH", str(tmp_path / "chat_history.json"))
    yield
    get_settings.cache_clear()


# ============================================================================
# Completion Client Fakes
# ============================================================================


class FakeLLMProvider(BaseLLMProvider):
    """
    Scripted completion provider.

    ``replies`` is consumed in order; an Exception entry is raised instead
    of returned. When ``gate`` is set, generate() waits on it first.
    """

    def __init__(self, replies=None):
        super().__init__(provider_name="fake", model="fake-model")
        self.replies = list(replies or [])
        self.requests: list[LLMRequest] = []
        self.gate: asyncio.Event | None = None
        self.closed = False

    async def generate(self, request: LLMRequest) -> LLMResponse:
        request = self._apply_defaults(request)
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        reply = self.replies.pop(0) if self.replies else "Hi there"
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(
            content=reply,
            model=request.model,
            usage=LLMUsage(prompt_tokens=3, completion_tokens=2, total_tokens=5),
            provider=self.provider_name,
        )

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_client() -> FakeLLMProvider:
    """Completion client that answers "Hi there" unless scripted otherwise."""
    return FakeLLMProvider()


@pytest.fixture
def conversation_settings() -> ConversationSettings:
    return ConversationSettings(
        system_message="You are a test assistant.",
        max_conversation_length=30,
        keep_recent_messages=24,
        max_message_length=4000,
    )


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "sessions" / "chat_history.json"


@pytest.fixture
def session_store(store_path) -> SessionStore:
    store = SessionStore(store_path)
    store.load()
    return store


@pytest.fixture
def manager(fake_client, session_store, conversation_settings) -> ConversationManager:
    return ConversationManager(
        client=fake_client,
        store=session_store,
        settings=conversation_settings,
    )


@pytest.fixture
def make_history():
    """
    Build an alternating user/assistant history.

    Usage:
        messages = make_history(31)
    """

    def _make(count: int) -> list[Message]:
        return [
            Message(
                role=Role.USER if index % 2 == 0 else Role.ASSISTANT,
                content=f"message {index}",
            )
            for index in range(count)
        ]

    return _make
