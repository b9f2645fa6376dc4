"""Fixtures for API tests: an application built around a scripted context."""

import pytest
from fastapi.testclient import TestClient

from chatapp.api.main import create_app
from chatapp.config import Settings
from chatapp.context import AppContext


@pytest.fixture
def app_context(manager, session_store, fake_client) -> AppContext:
    return AppContext(
        settings=Settings(),
        store=session_store,
        client=fake_client,
        manager=manager,
    )


@pytest.fixture
def client(app_context):
    """Create test client with the lifespan running."""
    with TestClient(create_app(context=app_context)) as test_client:
        yield test_client
