"""
Configuration settings for the StudyPrep backend.

Uses Pydantic settings management for environment variables and configuration.
"""

from typing import Annotated, Optional, List, Literal
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import field_validator


# Development-only fallbacks. Production deployments must set
# JWT_SECRET and SESSION_SECRET explicitly.
DEV_JWT_SECRET = "studyprep-dev-jwt-secret"
DEV_SESSION_SECRET = "studyprep-dev-session-secret"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    # API Settings
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "StudyPrep"
    VERSION: str = "1.0.0"
    DESCRIPTION: str = "Exam preparation platform: chapters, topics, quizzes and progress tracking"

    # Bearer tokens
    JWT_SECRET: Optional[str] = None
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours

    # Server-side sessions
    SESSION_SECRET: Optional[str] = None
    SESSION_COOKIE_NAME: str = "studyprep.sid"
    SESSION_MAX_AGE_SECONDS: int = 60 * 60 * 24  # 24 hours, fixed
    SESSION_COOKIE_SECURE: bool = False
    SESSION_BACKEND: Literal["memory", "database"] = "memory"

    # Storage
    STORAGE_BACKEND: Literal["memory", "database"] = "database"
    DATABASE_URL: str = "sqlite:///./studyprep.db"

    # Password reset
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60

    # Activity feed
    ACTIVITY_DEFAULT_LIMIT: int = 10

    # CORS
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str] | str:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Admin settings
    CREATE_FIRST_ADMIN: bool = True
    FIRST_ADMIN_USERNAME: str = "admin"
    FIRST_ADMIN_EMAIL: str = "admin@studyprep.local"
    FIRST_ADMIN_PASSWORD: str = "password"
    FIRST_ADMIN_NAME: str = "Admin User"

    # Development settings
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @property
    def jwt_secret(self) -> str:
        """Signing secret for bearer tokens, falling back to the dev value."""
        return self.JWT_SECRET or DEV_JWT_SECRET

    @property
    def session_secret(self) -> str:
        """Signing secret for session cookies, falling back to the dev value."""
        return self.SESSION_SECRET or DEV_SESSION_SECRET

    @property
    def uses_insecure_secrets(self) -> bool:
        return not self.JWT_SECRET or not self.SESSION_SECRET

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


def get_settings() -> Settings:
    return Settings()


# Create global settings instance
settings = get_settings()
