import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

from fastapi import Request

from envmanager.models.session import Session

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """Storage for authenticated sessions, keyed by session id."""

    @abstractmethod
    def store(self, session: Session) -> None:
        ...

    @abstractmethod
    def lookup(self, session_id: str) -> Optional[Session]:
        ...

    @abstractmethod
    def remove(self, session_id: str) -> None:
        ...


class InMemorySessionStore(SessionStore):
    """
    Process-local session store.

    Sessions are lost on restart. Expired sessions are dropped the first time
    they are looked up.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def store(self, session: Session) -> None:
        with self._lock:
            self._sessions[session.session_id] = session
        logger.info("Stored session for '%s'", session.login)

    def lookup(self, session_id: str) -> Optional[Session]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None and session.is_expired():
                del self._sessions[session_id]
                logger.info("Session for '%s' expired", session.login)
                return None
            return session

    def remove(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            logger.info("Removed session for '%s'", session.login)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


def get_session_store(request: Request) -> SessionStore:
    """Dependency returning the store attached to the running application."""
    return request.app.state.session_store
