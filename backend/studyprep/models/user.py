"""
User model for StudyPrep.

Defines the User table with credentials, role and password-reset state.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlalchemy import Integer, String, DateTime, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from studyprep.core.database import Base


class UserRole(str, Enum):
    """Roles a user can hold."""
    STUDENT = "student"
    ADMIN = "admin"


class User(Base):
    """
    User model for authentication and role management.
    """
    __tablename__ = "users"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # Authentication fields
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False
    )
    password: Mapped[str] = mapped_column(String(255), nullable=False)  # <hash>.<salt>

    # Profile fields
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20),
        default=UserRole.STUDENT.value,
        nullable=False
    )

    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Password reset tracking
    reset_token: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    reset_token_expiry: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Table constraints
    __table_args__ = (
        CheckConstraint("role IN ('student', 'admin')", name="check_user_role"),
        Index("idx_user_reset_token", "reset_token"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', email='{self.email}')>"
