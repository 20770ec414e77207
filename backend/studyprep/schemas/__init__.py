"""
Pydantic schemas for StudyPrep.

Records returned by the storage layer double as API response models;
request payloads are validated here before reaching the services.
"""

from .auth import (
    UserRecord,
    UserCreate,
    UserResponse,
    UserRegister,
    UserLogin,
    AuthResponse,
    PasswordResetRequest,
    PasswordReset,
    MessageResponse,
)
from .curriculum import (
    ChapterCreate,
    ChapterUpdate,
    ChapterRecord,
    TopicCreate,
    TopicUpdate,
    TopicRecord,
    QuestionCreate,
    QuestionUpdate,
    QuestionRecord,
)
from .progress import (
    QuizAttemptCreate,
    QuizAttemptRecord,
    UserProgressRecord,
    StudySessionCreate,
    StudySessionRecord,
    ActivityLogRecord,
    ChapterProgress,
    UserStats,
    AdminStats,
)

__all__ = [
    "UserRecord",
    "UserCreate",
    "UserResponse",
    "UserRegister",
    "UserLogin",
    "AuthResponse",
    "PasswordResetRequest",
    "PasswordReset",
    "MessageResponse",
    "ChapterCreate",
    "ChapterUpdate",
    "ChapterRecord",
    "TopicCreate",
    "TopicUpdate",
    "TopicRecord",
    "QuestionCreate",
    "QuestionUpdate",
    "QuestionRecord",
    "QuizAttemptCreate",
    "QuizAttemptRecord",
    "UserProgressRecord",
    "StudySessionCreate",
    "StudySessionRecord",
    "ActivityLogRecord",
    "ChapterProgress",
    "UserStats",
    "AdminStats",
]
