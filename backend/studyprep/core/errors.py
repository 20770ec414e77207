"""
Application error taxonomy for StudyPrep.

Services raise these; a single set of handlers in ``studyprep.main``
turns them into ``{"message": ...}`` JSON responses.
"""

from fastapi import status


class AppError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing input, duplicate unique values."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request data"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorized"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InvalidTokenError(AppError):
    """Password reset token unknown, already used or expired."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid or expired reset token"


class InternalError(AppError):
    pass
