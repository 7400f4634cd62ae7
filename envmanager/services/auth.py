import logging
import secrets
from datetime import timedelta
from typing import Callable, Iterator, Optional, Tuple

from jose import jwt, JWTError
from fastapi import Depends, Header
from fastapi.security import OAuth2PasswordBearer

from envmanager.core.config import settings
from envmanager.core.exceptions import AuthenticationError, GitHubAPIError
from envmanager.models.auth import TokenPayload
from envmanager.models.session import Session
from envmanager.services.github import GitHubClient
from envmanager.services.sessions import SessionStore, get_session_store

logger = logging.getLogger(__name__)

# Bearer token extraction; the X-Session-ID header is accepted as a fallback
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/pat", auto_error=False)

PAT_INSTRUCTIONS = "Please create a GitHub Personal Access Token with 'repo' and 'workflow' scopes"
PAT_URL = "https://github.com/settings/tokens/new"


class AuthService:
    """
    Service for PAT authentication and session tokens.
    """

    def __init__(self, client_factory: Callable[[str], GitHubClient] = GitHubClient):
        self.client_factory = client_factory

    def authenticate_with_pat(self, token: str, store: SessionStore) -> Tuple[str, Session]:
        """
        Validate a Personal Access Token against GitHub and open a session.

        Args:
            token: GitHub Personal Access Token
            store: Session store to register the new session in

        Returns:
            Signed session token and the stored session

        Raises:
            AuthenticationError: If GitHub rejects the token
            GitHubAPIError: If GitHub cannot be reached
        """
        client = self.client_factory(token)
        try:
            user = client.get_user()
        except GitHubAPIError as e:
            if e.status_code in (401, 403):
                raise AuthenticationError("Invalid token")
            raise
        finally:
            client.close()

        session = Session.start(
            session_id=secrets.token_urlsafe(32),
            user=user,
            token=token,
            lifetime=timedelta(minutes=settings.SESSION_EXPIRE_MINUTES),
        )
        store.store(session)
        logger.info("Authenticated '%s' with a personal access token", user.login)
        return self.create_access_token(session), session

    def create_access_token(self, session: Session) -> str:
        """
        Create a signed token referencing a session.

        Args:
            session: Stored session

        Returns:
            JWT whose subject is the session id
        """
        to_encode = {"sub": session.session_id, "exp": session.expires_at}
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    def decode_session_id(self, token: str) -> str:
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            raise AuthenticationError("Invalid session")

        token_data = TokenPayload(**payload)
        if token_data.sub is None:
            raise AuthenticationError("Invalid session")
        return token_data.sub

    async def get_current_session(
        self,
        token: Optional[str] = Depends(oauth2_scheme),
        x_session_id: Optional[str] = Header(None),
        store: SessionStore = Depends(get_session_store),
    ) -> Session:
        """
        Resolve the session behind the request's bearer token.

        Raises:
            AuthenticationError: If no token is sent, it is invalid, or the
                session has expired or been removed
        """
        token = token or x_session_id
        if not token:
            raise AuthenticationError("No session")

        session = store.lookup(self.decode_session_id(token))
        if session is None:
            raise AuthenticationError("Invalid session")
        return session

    def logout(self, session: Session, store: SessionStore) -> None:
        store.remove(session.session_id)


# Create a singleton instance
auth_service = AuthService()


def get_github_client(session: Session = Depends(auth_service.get_current_session)) -> Iterator[GitHubClient]:
    """Dependency yielding a GitHub client bound to the session's token."""
    client = GitHubClient(session.token)
    try:
        yield client
    finally:
        client.close()
