from datetime import datetime, timedelta, timezone
from typing import Optional
from pydantic import BaseModel, Field

from envmanager.models.auth import UserResponse


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Session(BaseModel):
    """Server-side session holding the user's GitHub token."""
    session_id: str
    login: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    token: str = Field(..., exclude=True, repr=False)
    created_at: datetime = Field(default_factory=_utcnow)
    expires_at: datetime

    @classmethod
    def start(cls, session_id: str, user: UserResponse, token: str, lifetime: timedelta) -> "Session":
        now = _utcnow()
        return cls(
            session_id=session_id,
            login=user.login,
            name=user.name,
            avatar_url=user.avatar_url,
            token=token,
            created_at=now,
            expires_at=now + lifetime,
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or _utcnow()) >= self.expires_at

    def to_user(self) -> UserResponse:
        return UserResponse(login=self.login, name=self.name, avatar_url=self.avatar_url)
