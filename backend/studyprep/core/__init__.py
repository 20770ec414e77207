"""
Core module for the StudyPrep backend.

This module contains core functionality including:
- Configuration management
- Database engine and schema setup
- Security utilities (password hashing, bearer tokens)
- The application error taxonomy
"""

from .config import settings, Settings, get_settings
from .errors import (
    AppError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    InvalidTokenError,
    InternalError,
)
from .security import (
    hash_password,
    verify_password,
    generate_reset_token,
    TokenService,
)

__all__ = [
    "settings",
    "Settings",
    "get_settings",
    "AppError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "InvalidTokenError",
    "InternalError",
    "hash_password",
    "verify_password",
    "generate_reset_token",
    "TokenService",
]
