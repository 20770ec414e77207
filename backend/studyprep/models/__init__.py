"""
Database models for StudyPrep.

This module contains all SQLAlchemy models for the application:
- User model for authentication and roles
- Curriculum models (chapters, topics, questions)
- Progress models (quiz attempts, topic progress, study sessions)
- Activity log and server-side session rows
"""

from studyprep.core.database import Base

# Import all models to ensure they're registered with SQLAlchemy
from .user import User, UserRole
from .curriculum import Chapter, Topic, Question
from .progress import QuizAttempt, UserProgress, StudySession
from .activity import ActivityLog
from .session import HttpSession

# Export all models
__all__ = [
    "Base",
    "User",
    "UserRole",
    "Chapter",
    "Topic",
    "Question",
    "QuizAttempt",
    "UserProgress",
    "StudySession",
    "ActivityLog",
    "HttpSession"
]
