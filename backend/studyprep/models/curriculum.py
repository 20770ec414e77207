"""
Curriculum models for StudyPrep.

Defines the Chapter -> Topic -> Question hierarchy. Child rows are removed
by the storage layer explicitly, so no ORM cascade is configured here.
"""

from typing import List
from sqlalchemy import Integer, String, Text, ForeignKey, Index, CheckConstraint, JSON
from sqlalchemy.orm import Mapped, mapped_column

from studyprep.core.database import Base


class Chapter(Base):
    """
    Top level of the curriculum.
    """
    __tablename__ = "chapters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint('"order" >= 1', name="check_chapter_order_positive"),
    )

    def __repr__(self) -> str:
        return f"<Chapter(id={self.id}, title='{self.title}', order={self.order})>"


class Topic(Base):
    """
    A topic within a chapter; quizzes and progress attach here.
    """
    __tablename__ = "topics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    chapter_id: Mapped[int] = mapped_column(Integer, ForeignKey("chapters.id"), nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint('"order" >= 1', name="check_topic_order_positive"),
        Index("idx_topic_chapter_order", "chapter_id", "order"),
    )

    def __repr__(self) -> str:
        return f"<Topic(id={self.id}, chapter_id={self.chapter_id}, title='{self.title}')>"


class Question(Base):
    """
    Multiple-choice question with a single correct option.
    """
    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[List[str]] = mapped_column(JSON, nullable=False)
    correct_option: Mapped[int] = mapped_column(Integer, nullable=False)
    explanation: Mapped[str] = mapped_column(Text, nullable=False)
    topic_id: Mapped[int] = mapped_column(Integer, ForeignKey("topics.id"), nullable=False, index=True)

    __table_args__ = (
        CheckConstraint("correct_option >= 0", name="check_correct_option_positive"),
    )

    def __repr__(self) -> str:
        return f"<Question(id={self.id}, topic_id={self.topic_id})>"
