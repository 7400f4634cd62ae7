from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class SyncRequest(BaseModel):
    """Copy variables from one scope to many repositories and environments."""
    source_repo: str = Field(..., description="owner/repo")
    source_env: Optional[str] = None
    target_repos: List[str] = Field(..., min_length=1)
    target_envs: List[str] = Field(default_factory=list)
    variable_names: List[str] = Field(default_factory=list)
    overwrite: bool = False


class SyncResult(BaseModel):
    message: str
    synced_count: int
    skipped: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class ExportFormat(str, Enum):
    JSON = "json"
    DOTENV = "dotenv"


class ExportRequest(BaseModel):
    repos: List[str] = Field(..., min_length=1)
    envs: List[str] = Field(default_factory=list)
    format: ExportFormat = ExportFormat.JSON


class ImportRequest(BaseModel):
    """
    Variables to write into one repository or environment.

    ``content`` is the text of a .env file; ``variables`` takes precedence for
    names present in both.
    """
    repo: str = Field(..., description="owner/repo")
    environment: Optional[str] = None
    variables: Dict[str, str] = Field(default_factory=dict)
    content: Optional[str] = None
    overwrite: bool = False


class ImportResult(BaseModel):
    message: str
    imported_count: int
    skipped: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class CompareResult(BaseModel):
    repositories: Dict[str, Dict[str, str]]
    differences: Dict[str, Dict[str, Optional[str]]]
