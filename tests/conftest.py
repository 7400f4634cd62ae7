import pytest
import os
from datetime import timedelta
from unittest.mock import MagicMock

# Set test environment variables
os.environ["SECRET_KEY"] = "test_secret_key"

from fastapi.testclient import TestClient

from envmanager.main import app
from envmanager.models.auth import UserResponse
from envmanager.models.session import Session
from envmanager.services.auth import auth_service, get_github_client
from envmanager.services.github import GitHubClient
from envmanager.services.sessions import InMemorySessionStore

mock_user = UserResponse(login="octocat", name="The Octocat", avatar_url="https://github.com/images/octocat.png")


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture(autouse=True)
def session_store():
    """Fresh session store per test."""
    store = InMemorySessionStore()
    app.state.session_store = store
    yield store
    app.dependency_overrides.clear()


@pytest.fixture
def mock_session(session_store):
    """Stored session for the mock user."""
    session = Session.start("test-session-id", mock_user, "ghp_testtoken", timedelta(hours=1))
    session_store.store(session)
    return session


@pytest.fixture
def auth_headers(mock_session):
    token = auth_service.create_access_token(mock_session)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def github(auth_headers):
    """GitHub client double injected into every authenticated route."""
    mock_client = MagicMock(spec=GitHubClient)
    app.dependency_overrides[get_github_client] = lambda: mock_client
    return mock_client
