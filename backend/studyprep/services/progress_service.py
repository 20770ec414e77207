"""
Progress service for StudyPrep.

Records quiz attempts and study sessions and computes the per-user and
admin statistics. Statistics are recomputed from storage on every call.
"""

import logging

from studyprep.core.clock import utcnow, as_naive_utc
from studyprep.core.errors import ValidationError
from studyprep.models.user import UserRole
from studyprep.schemas import (
    QuizAttemptCreate,
    QuizAttemptRecord,
    StudySessionCreate,
    StudySessionRecord,
    UserStats,
    AdminStats,
)
from studyprep.storage import Storage
from . import aggregation
from .activity import ActivityRecorder


logger = logging.getLogger(__name__)


class ProgressService:
    def __init__(self, storage: Storage, activity: ActivityRecorder | None = None):
        self.storage = storage
        self.activity = activity or ActivityRecorder(storage)

    def submit_quiz_attempt(self, user_id: int, data: QuizAttemptCreate) -> QuizAttemptRecord:
        """
        Store a finished quiz and update the user's progress on its topic.

        The attempt is always stored once the topic exists. Progress and the
        activity entry are only written when the topic's chapter still exists.

        Raises:
            ValidationError: the topic does not exist
        """
        topic = self.storage.get_topic(data.topic_id)
        if topic is None:
            raise ValidationError("Topic not found")

        now = utcnow()
        attempt = self.storage.create_quiz_attempt(
            user_id=user_id,
            topic_id=topic.id,
            score=data.score,
            total_questions=data.total_questions,
            completed_at=now,
        )

        chapter = self.storage.get_chapter(topic.chapter_id)
        if chapter is not None:
            progress, completed = aggregation.topic_progress(data.score, data.total_questions)
            self.storage.upsert_user_progress(
                user_id=user_id,
                chapter_id=chapter.id,
                topic_id=topic.id,
                progress=progress,
                completed=completed,
                last_activity=now,
            )
            self.activity.record(
                user_id,
                f"Completed quiz on {topic.title}",
                entity_type="topic",
                entity_id=topic.id,
                metadata={"score": data.score, "totalQuestions": data.total_questions},
            )
        else:
            logger.warning(f"Topic {topic.id} has no chapter {topic.chapter_id}; progress not updated")

        logger.info(f"User {user_id} scored {data.score}/{data.total_questions} on topic {topic.id}")
        return attempt

    def list_quiz_attempts(self, user_id: int):
        return self.storage.list_quiz_attempts_by_user(user_id)

    def log_study_session(self, user_id: int, data: StudySessionCreate) -> StudySessionRecord:
        """
        Store a study session and record it in the activity feed.

        Raises:
            ValidationError: the chapter, or the given topic, does not exist
        """
        chapter = self.storage.get_chapter(data.chapter_id)
        if chapter is None:
            raise ValidationError("Chapter not found")

        if data.topic_id is not None and self.storage.get_topic(data.topic_id) is None:
            raise ValidationError("Topic not found")

        started_at = as_naive_utc(data.started_at) if data.started_at else utcnow()
        session = self.storage.create_study_session(
            user_id=user_id,
            chapter_id=chapter.id,
            topic_id=data.topic_id,
            duration=data.duration,
            started_at=started_at,
        )

        suffix = " topic" if data.topic_id is not None else ""
        self.activity.record(
            user_id,
            f"Studied {chapter.title}{suffix}",
            entity_type="chapter",
            entity_id=chapter.id,
            metadata={"duration": data.duration},
        )
        return session

    def list_study_sessions(self, user_id: int):
        return self.storage.list_study_sessions_by_user(user_id)

    def list_progress(self, user_id: int, chapter_id: int | None = None):
        if chapter_id is None:
            return self.storage.list_user_progress(user_id)
        return self.storage.list_user_progress_by_chapter(user_id, chapter_id)

    def get_user_stats(self, user_id: int) -> UserStats:
        attempts = self.storage.list_quiz_attempts_by_user(user_id)
        sessions = self.storage.list_study_sessions_by_user(user_id)
        chapters = aggregation.chapter_progress(
            self.storage.list_chapters(),
            self.storage.list_topics(),
            self.storage.list_user_progress(user_id),
        )
        return UserStats(
            questions_attempted=aggregation.questions_attempted(attempts),
            accuracy=aggregation.accuracy(attempts),
            study_time=aggregation.study_time(sessions),
            overall_progress=aggregation.overall_progress(chapters),
            chapter_progress=chapters,
        )

    def get_admin_stats(self) -> AdminStats:
        return AdminStats(
            total_students=self.storage.count_users(role=UserRole.STUDENT.value),
            chapters=self.storage.count_chapters(),
            topics=self.storage.count_topics(),
            questions=self.storage.count_questions(),
        )
