"""
Progress tracking models for StudyPrep.

Defines QuizAttempt, UserProgress and StudySession.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import (
    Boolean, Integer, DateTime, ForeignKey,
    UniqueConstraint, Index, CheckConstraint
)
from sqlalchemy.orm import Mapped, mapped_column

from studyprep.core.database import Base


class QuizAttempt(Base):
    """
    One submitted quiz. Never updated or deleted.
    """
    __tablename__ = "quiz_attempts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    topic_id: Mapped[int] = mapped_column(Integer, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        CheckConstraint("score >= 0 AND score <= total_questions", name="check_attempt_score"),
        CheckConstraint("total_questions >= 1", name="check_attempt_total_positive"),
        Index("idx_quiz_attempt_user_completed", "user_id", "completed_at"),
    )

    def __repr__(self) -> str:
        return f"<QuizAttempt(user_id={self.user_id}, topic_id={self.topic_id}, score={self.score}/{self.total_questions})>"


class UserProgress(Base):
    """
    Latest mastery of one topic for one user. One row per (user, topic).
    """
    __tablename__ = "user_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    chapter_id: Mapped[int] = mapped_column(Integer, nullable=False)
    topic_id: Mapped[int] = mapped_column(Integer, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_activity: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "topic_id", name="uq_user_topic_progress"),
        CheckConstraint("progress >= 0 AND progress <= 100", name="check_progress_percentage"),
        Index("idx_user_progress_chapter", "user_id", "chapter_id"),
    )

    def __repr__(self) -> str:
        return f"<UserProgress(user_id={self.user_id}, topic_id={self.topic_id}, progress={self.progress}%)>"


class StudySession(Base):
    """
    A logged block of study time, in minutes.
    """
    __tablename__ = "study_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    chapter_id: Mapped[int] = mapped_column(Integer, nullable=False)
    topic_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        CheckConstraint("duration > 0", name="check_session_duration_positive"),
        Index("idx_study_session_user_started", "user_id", "started_at"),
    )

    def __repr__(self) -> str:
        return f"<StudySession(user_id={self.user_id}, chapter_id={self.chapter_id}, duration={self.duration})>"
