import pytest
from datetime import timedelta
from unittest.mock import patch, MagicMock

from jose import jwt

from envmanager.core.config import settings
from envmanager.core.exceptions import AuthenticationError, GitHubAPIError
from envmanager.models.session import Session
from envmanager.services.auth import AuthService, auth_service

from conftest import mock_user


@pytest.fixture
def mock_github_user():
    """GitHub accepts the token and returns the mock user."""
    github_client = MagicMock()
    github_client.get_user.return_value = mock_user
    with patch.object(auth_service, "client_factory", return_value=github_client) as factory:
        yield factory


@pytest.fixture
def mock_github_rejects():
    github_client = MagicMock()
    github_client.get_user.side_effect = GitHubAPIError("Bad credentials", status_code=401)
    with patch.object(auth_service, "client_factory", return_value=github_client):
        yield


def test_get_auth_url(client):
    response = client.get("/api/auth/url")
    assert response.status_code == 200
    assert response.json()["type"] == "pat"
    assert response.json()["url"] == "https://github.com/settings/tokens/new"


def test_authenticate_with_pat(client, session_store, mock_github_user):
    """Test PAT login opens a session."""
    response = client.post("/api/auth/pat", json={"token": "ghp_valid"})
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["login"] == "octocat"
    assert "ghp_valid" not in response.text

    mock_github_user.assert_called_once_with("ghp_valid")
    assert len(session_store) == 1
    session_id = jwt.decode(body["access_token"], settings.SECRET_KEY, algorithms=[settings.ALGORITHM])["sub"]
    assert session_store.lookup(session_id).token == "ghp_valid"


def test_validate_is_an_alias_for_pat(client, mock_github_user):
    response = client.post("/api/auth/validate", json={"token": "ghp_valid"})
    assert response.status_code == 200
    assert response.json()["user"]["login"] == "octocat"


def test_authenticate_with_invalid_pat(client, session_store, mock_github_rejects):
    response = client.post("/api/auth/pat", json={"token": "ghp_invalid"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"
    assert len(session_store) == 0


def test_authenticate_without_token(client):
    response = client.post("/api/auth/pat", json={})
    assert response.status_code == 422


def test_authenticate_when_github_is_down(client, session_store):
    github_client = MagicMock()
    github_client.get_user.side_effect = GitHubAPIError("Failed to reach GitHub: ConnectionError")
    with patch.object(auth_service, "client_factory", return_value=github_client):
        response = client.post("/api/auth/pat", json={"token": "ghp_valid"})
    assert response.status_code == 502
    assert len(session_store) == 0


def test_get_auth_status(client, auth_headers):
    response = client.get("/api/auth/status", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {
        "login": mock_user.login,
        "name": mock_user.name,
        "avatar_url": mock_user.avatar_url,
    }


def test_get_auth_status_with_session_header(client, auth_headers):
    token = auth_headers["Authorization"].split(" ", 1)[1]
    response = client.get("/api/auth/status", headers={"X-Session-ID": token})
    assert response.status_code == 200
    assert response.json()["login"] == "octocat"


def test_get_auth_status_without_session(client):
    response = client.get("/api/auth/status")
    assert response.status_code == 401
    assert response.json()["detail"] == "No session"


def test_get_auth_status_with_forged_token(client, mock_session):
    forged = jwt.encode({"sub": mock_session.session_id}, "wrong-key", algorithm="HS256")
    response = client.get("/api/auth/status", headers={"Authorization": f"Bearer {forged}"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid session"


def test_expired_session_is_rejected(client, session_store):
    session = Session.start("expired", mock_user, "ghp_old", timedelta(seconds=-1))
    session_store.store(session)
    token = jwt.encode({"sub": "expired"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    response = client.get("/api/auth/status", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert session_store.lookup("expired") is None


def test_logout(client, session_store, auth_headers, mock_session):
    response = client.post("/api/auth/logout", headers=auth_headers)
    assert response.status_code == 204
    assert session_store.lookup(mock_session.session_id) is None

    response = client.get("/api/auth/status", headers=auth_headers)
    assert response.status_code == 401


def test_protected_route_requires_session(client):
    response = client.get("/api/repos/octocat/hello-world/variables")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_authenticate_with_pat_closes_client(session_store):
    github_client = MagicMock()
    github_client.get_user.return_value = mock_user
    service = AuthService(client_factory=lambda token: github_client)

    access_token, session = service.authenticate_with_pat("ghp_valid", session_store)

    github_client.close.assert_called_once()
    assert service.decode_session_id(access_token) == session.session_id


def test_decode_session_id_without_subject():
    token = jwt.encode({"exp": 9999999999}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    with pytest.raises(AuthenticationError):
        auth_service.decode_session_id(token)
