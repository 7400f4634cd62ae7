from typing import Optional
from pydantic import BaseModel, Field


class AuthRequest(BaseModel):
    """Personal Access Token submitted by the user."""
    token: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Authenticated GitHub user, without the token."""
    login: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class TokenPayload(BaseModel):
    sub: Optional[str] = None
    exp: Optional[int] = None


class AuthInstructions(BaseModel):
    type: str = "pat"
    instructions: str
    url: str
