"""
Authentication schemas: user records, registration/login payloads and
password reset payloads.
"""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

from studyprep.models.user import UserRole
from .base import CamelModel


# Matches the ``users`` column widths. EmailStr already caps addresses at 254.
USERNAME_MAX_LENGTH = 50
NAME_MAX_LENGTH = 255


def blank_as_missing(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


class UserRecord(CamelModel):
    """Full stored user, including credentials. Never returned to clients."""
    id: int
    username: str
    email: str
    password: str
    name: str
    role: UserRole = UserRole.STUDENT
    last_login: Optional[datetime] = None
    reset_token: Optional[str] = None
    reset_token_expiry: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UserCreate(CamelModel):
    """Values persisted for a new user; ``password`` is already hashed."""
    username: str
    email: str
    password: str
    name: str
    role: UserRole = UserRole.STUDENT


class UserResponse(CamelModel):
    """User as seen by clients: no password hash, no reset token state."""
    id: int
    username: str
    email: str
    name: str
    role: UserRole
    last_login: Optional[datetime] = None


class UserRegister(CamelModel):
    """Missing or blank fields are rejected by ``AuthService.register``."""
    username: Optional[str] = Field(None, max_length=USERNAME_MAX_LENGTH)
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    name: Optional[str] = Field(None, max_length=NAME_MAX_LENGTH)
    role: UserRole = UserRole.STUDENT

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_as_missing(cls, v):
        return blank_as_missing(v)


class UserLogin(CamelModel):
    username: str = ""
    password: str = ""


class AuthResponse(CamelModel):
    user: UserResponse
    token: str


class PasswordResetRequest(CamelModel):
    """
    ``email`` is normalized the way ``EmailStr`` normalizes it at registration,
    so lookups match the stored value. Unparseable addresses pass through
    unchanged: they match no user and still get the generic answer.
    """
    email: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        v = blank_as_missing(v)
        if not isinstance(v, str):
            return v
        try:
            return validate_email(v)[1]
        except PydanticCustomError:
            return v


class PasswordReset(CamelModel):
    token: Optional[str] = None
    new_password: Optional[str] = None


class MessageResponse(CamelModel):
    message: str
