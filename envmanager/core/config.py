import os
from typing import Any, List

from pydantic import field_validator
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


class Settings(BaseSettings):
    # API settings
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "GitHub Environment Manager"

    # CORS settings
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    # Session token settings
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-me")
    ALGORITHM: str = "HS256"
    SESSION_EXPIRE_MINUTES: int = 480

    # GitHub settings
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_TIMEOUT: float = 30.0

    # Server settings
    HOST: str = "localhost"
    PORT: int = 8005
    LOG_LEVEL: str = "INFO"

    # Validation
    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    def assemble_cors_origins(cls, v: Any) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    @field_validator("HOST")
    def validate_host(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("invalid host configuration")
        return v

    @field_validator("PORT")
    def validate_port(cls, v: int) -> int:
        if v <= 0 or v > 65535:
            raise ValueError("invalid port number")
        return v

    @field_validator("GITHUB_API_URL")
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


settings = Settings()
