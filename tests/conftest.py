# tests/conftest.py
import os
import sys
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from server import create_app
from src.database.stores import RagStores
from src.middlewares.auth import get_current_user_id
from src.services.document import DocumentService
from tests.utils.utils import TEST_USER_ID


@pytest.fixture
def stores() -> RagStores:
    return RagStores.in_memory()


@pytest.fixture
def complete() -> AsyncMock:
    """Stand-in for the chat-completion collaborator."""
    return AsyncMock(return_value="Generated answer")


@pytest.fixture
def service(stores, complete) -> DocumentService:
    return DocumentService(stores, complete)


@pytest.fixture
def app(stores, complete):
    app = create_app(stores=stores, complete=complete)
    app.dependency_overrides[get_current_user_id] = lambda: TEST_USER_ID
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
