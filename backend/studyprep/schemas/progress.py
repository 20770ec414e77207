"""
Progress schemas: quiz attempts, topic progress, study sessions,
activity entries and the aggregated statistics.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator

from .base import CamelModel


class QuizAttemptCreate(CamelModel):
    topic_id: int
    score: int = Field(..., ge=0)
    total_questions: int = Field(..., ge=1)

    @model_validator(mode="after")
    def check_score_bounds(self) -> "QuizAttemptCreate":
        if self.score > self.total_questions:
            raise ValueError("score cannot exceed totalQuestions")
        return self


class QuizAttemptRecord(CamelModel):
    id: int
    user_id: int
    topic_id: int
    score: int
    total_questions: int
    completed_at: datetime


class UserProgressRecord(CamelModel):
    id: int
    user_id: int
    chapter_id: int
    topic_id: int
    completed: bool = False
    progress: int = 0
    last_activity: Optional[datetime] = None


class StudySessionCreate(CamelModel):
    chapter_id: int
    topic_id: Optional[int] = None
    duration: int = Field(..., gt=0)  # minutes
    started_at: Optional[datetime] = None


class StudySessionRecord(CamelModel):
    id: int
    user_id: int
    chapter_id: int
    topic_id: Optional[int] = None
    duration: int
    started_at: datetime


class ActivityLogRecord(CamelModel):
    id: int
    user_id: int
    activity: str
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    created_at: datetime
    metadata: Optional[Dict[str, Any]] = None


class ChapterProgress(CamelModel):
    chapter_id: int
    title: str
    progress: int


class UserStats(CamelModel):
    questions_attempted: int
    accuracy: int
    study_time: int
    overall_progress: int
    chapter_progress: List[ChapterProgress]


class AdminStats(CamelModel):
    total_students: int
    chapters: int
    topics: int
    questions: int
