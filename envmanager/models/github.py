from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime


class Owner(BaseModel):
    """Owner of a repository."""
    login: str
    id: int


class Repository(BaseModel):
    """Repository as listed for the authenticated user."""
    id: int
    name: str
    full_name: str
    description: Optional[str] = None
    private: bool = False
    owner: Owner


class Pagination(BaseModel):
    page: int
    per_page: int
    total_count: int
    has_next: bool
    has_prev: bool
    total_pages: int


class RepositoryList(BaseModel):
    repositories: List[Repository]
    pagination: Pagination


class Environment(BaseModel):
    """Deployment environment of a repository."""
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EnvironmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class Variable(BaseModel):
    """Actions variable at repository or environment scope."""
    name: str
    value: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class VariableCreate(BaseModel):
    name: str = Field(..., min_length=1)
    value: str


class VariableUpdate(BaseModel):
    value: str


class Secret(BaseModel):
    """Actions secret metadata. GitHub never returns secret values."""
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SecretCreate(BaseModel):
    name: str = Field(..., min_length=1)
    value: str


class SecretUpdate(BaseModel):
    value: str


class PublicKey(BaseModel):
    """Response of GitHub's "get public key" endpoints."""
    key_id: str
    key: str


class SealedSecret(BaseModel):
    """Request body of GitHub's "create or update secret" endpoints."""
    encrypted_value: str
    key_id: str


class Message(BaseModel):
    message: str
