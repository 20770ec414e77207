"""
SQL storage backend built on a SQLAlchemy session.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from studyprep.core.errors import NotFoundError
from studyprep.models import (
    User,
    Chapter,
    Topic,
    Question,
    QuizAttempt,
    UserProgress,
    StudySession,
    ActivityLog,
)
from studyprep.schemas import (
    UserRecord,
    UserCreate,
    ChapterCreate,
    ChapterRecord,
    TopicCreate,
    TopicRecord,
    QuestionCreate,
    QuestionRecord,
    QuizAttemptRecord,
    UserProgressRecord,
    StudySessionRecord,
    ActivityLogRecord,
)
from .base import Storage


logger = logging.getLogger(__name__)


def _activity_record(row: ActivityLog) -> ActivityLogRecord:
    return ActivityLogRecord(
        id=row.id,
        user_id=row.user_id,
        activity=row.activity,
        entity_type=row.entity_type,
        entity_id=row.entity_id,
        created_at=row.created_at,
        metadata=row.details,
    )


class DatabaseStorage(Storage):
    """
    Storage over one SQLAlchemy session. Every public write commits.
    """

    def __init__(self, db: Session):
        self.db = db

    def _add(self, row):
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def _update(self, model, row_id: int, changes: Dict[str, Any], label: str):
        row = self.db.get(model, row_id)
        if row is None:
            raise NotFoundError(f"{label} with id {row_id} not found")
        for field, value in changes.items():
            setattr(row, field, value)
        self.db.commit()
        self.db.refresh(row)
        return row

    # Users

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        user = self.db.get(User, user_id)
        return UserRecord.model_validate(user) if user else None

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        user = self.db.query(User).filter(User.username == username).first()
        return UserRecord.model_validate(user) if user else None

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        user = self.db.query(User).filter(User.email == email).first()
        return UserRecord.model_validate(user) if user else None

    def create_user(self, data: UserCreate) -> UserRecord:
        values = data.model_dump()
        values["role"] = data.role.value
        return UserRecord.model_validate(self._add(User(**values)))

    def list_users(self) -> List[UserRecord]:
        users = self.db.query(User).order_by(User.id).all()
        return [UserRecord.model_validate(u) for u in users]

    def count_users(self, role: Optional[str] = None) -> int:
        query = self.db.query(User)
        if role is not None:
            query = query.filter(User.role == role)
        return query.count()

    def update_user_last_login(self, user_id: int, at: datetime) -> None:
        self.db.execute(update(User).where(User.id == user_id).values(last_login=at))
        self.db.commit()

    def set_password_reset_token(self, user_id: int, token: str, expires_at: datetime) -> None:
        self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(reset_token=token, reset_token_expiry=expires_at)
        )
        self.db.commit()

    def reset_password_with_token(self, token: str, password_hash: str, now: datetime) -> bool:
        # Match and expiry are checked by the UPDATE itself, not a prior read.
        result = self.db.execute(
            update(User)
            .where(User.reset_token == token, User.reset_token_expiry > now)
            .values(password=password_hash, reset_token=None, reset_token_expiry=None)
        )
        self.db.commit()
        return result.rowcount > 0

    # Chapters

    def create_chapter(self, data: ChapterCreate) -> ChapterRecord:
        return ChapterRecord.model_validate(self._add(Chapter(**data.model_dump())))

    def get_chapter(self, chapter_id: int) -> Optional[ChapterRecord]:
        chapter = self.db.get(Chapter, chapter_id)
        return ChapterRecord.model_validate(chapter) if chapter else None

    def list_chapters(self) -> List[ChapterRecord]:
        chapters = self.db.query(Chapter).order_by(Chapter.order, Chapter.id).all()
        return [ChapterRecord.model_validate(c) for c in chapters]

    def update_chapter(self, chapter_id: int, changes: Dict[str, Any]) -> ChapterRecord:
        return ChapterRecord.model_validate(self._update(Chapter, chapter_id, changes, "Chapter"))

    def _delete_chapter(self, chapter_id: int) -> None:
        topic_ids = [
            topic_id for (topic_id,) in
            self.db.query(Topic.id).filter(Topic.chapter_id == chapter_id).all()
        ]
        for topic_id in topic_ids:
            self._delete_topic(topic_id)
        self.db.query(Chapter).filter(Chapter.id == chapter_id).delete()

    def delete_chapter(self, chapter_id: int) -> None:
        self._delete_chapter(chapter_id)
        self.db.commit()
        logger.info(f"Chapter {chapter_id} deleted with its topics and questions")

    def count_chapters(self) -> int:
        return self.db.query(Chapter).count()

    # Topics

    def create_topic(self, data: TopicCreate) -> TopicRecord:
        return TopicRecord.model_validate(self._add(Topic(**data.model_dump())))

    def get_topic(self, topic_id: int) -> Optional[TopicRecord]:
        topic = self.db.get(Topic, topic_id)
        return TopicRecord.model_validate(topic) if topic else None

    def list_topics(self) -> List[TopicRecord]:
        topics = self.db.query(Topic).order_by(Topic.order, Topic.id).all()
        return [TopicRecord.model_validate(t) for t in topics]

    def list_topics_by_chapter(self, chapter_id: int) -> List[TopicRecord]:
        topics = self.db.query(Topic).filter(
            Topic.chapter_id == chapter_id
        ).order_by(Topic.order, Topic.id).all()
        return [TopicRecord.model_validate(t) for t in topics]

    def update_topic(self, topic_id: int, changes: Dict[str, Any]) -> TopicRecord:
        return TopicRecord.model_validate(self._update(Topic, topic_id, changes, "Topic"))

    def _delete_topic(self, topic_id: int) -> None:
        question_ids = [
            question_id for (question_id,) in
            self.db.query(Question.id).filter(Question.topic_id == topic_id).all()
        ]
        for question_id in question_ids:
            self._delete_question(question_id)
        self.db.query(Topic).filter(Topic.id == topic_id).delete()

    def delete_topic(self, topic_id: int) -> None:
        self._delete_topic(topic_id)
        self.db.commit()

    def count_topics(self) -> int:
        return self.db.query(Topic).count()

    # Questions

    def create_question(self, data: QuestionCreate) -> QuestionRecord:
        return QuestionRecord.model_validate(self._add(Question(**data.model_dump())))

    def get_question(self, question_id: int) -> Optional[QuestionRecord]:
        question = self.db.get(Question, question_id)
        return QuestionRecord.model_validate(question) if question else None

    def list_questions(self) -> List[QuestionRecord]:
        questions = self.db.query(Question).order_by(Question.id).all()
        return [QuestionRecord.model_validate(q) for q in questions]

    def list_questions_by_topic(self, topic_id: int) -> List[QuestionRecord]:
        questions = self.db.query(Question).filter(
            Question.topic_id == topic_id
        ).order_by(Question.id).all()
        return [QuestionRecord.model_validate(q) for q in questions]

    def update_question(self, question_id: int, changes: Dict[str, Any]) -> QuestionRecord:
        return QuestionRecord.model_validate(self._update(Question, question_id, changes, "Question"))

    def _delete_question(self, question_id: int) -> None:
        self.db.query(Question).filter(Question.id == question_id).delete()

    def delete_question(self, question_id: int) -> None:
        self._delete_question(question_id)
        self.db.commit()

    def count_questions(self) -> int:
        return self.db.query(Question).count()

    # Quiz attempts

    def create_quiz_attempt(
        self,
        user_id: int,
        topic_id: int,
        score: int,
        total_questions: int,
        completed_at: datetime,
    ) -> QuizAttemptRecord:
        attempt = QuizAttempt(
            user_id=user_id,
            topic_id=topic_id,
            score=score,
            total_questions=total_questions,
            completed_at=completed_at,
        )
        return QuizAttemptRecord.model_validate(self._add(attempt))

    def list_quiz_attempts_by_user(self, user_id: int) -> List[QuizAttemptRecord]:
        attempts = self.db.query(QuizAttempt).filter(
            QuizAttempt.user_id == user_id
        ).order_by(QuizAttempt.completed_at.desc(), QuizAttempt.id.desc()).all()
        return [QuizAttemptRecord.model_validate(a) for a in attempts]

    # Topic progress

    def _find_progress(self, user_id: int, topic_id: int) -> Optional[UserProgress]:
        return self.db.query(UserProgress).filter(
            UserProgress.user_id == user_id,
            UserProgress.topic_id == topic_id
        ).first()

    def upsert_user_progress(
        self,
        user_id: int,
        chapter_id: int,
        topic_id: int,
        progress: int,
        completed: bool,
        last_activity: datetime,
    ) -> UserProgressRecord:
        values = {
            "chapter_id": chapter_id,
            "progress": progress,
            "completed": completed,
            "last_activity": last_activity,
        }
        row = self._find_progress(user_id, topic_id)
        if row is None:
            row = UserProgress(user_id=user_id, topic_id=topic_id, **values)
            self.db.add(row)
            try:
                self.db.commit()
            except IntegrityError:
                # A concurrent submission inserted the row first; update it instead.
                self.db.rollback()
                logger.info(f"Progress row for user {user_id}, topic {topic_id} already exists, updating")
                row = self._find_progress(user_id, topic_id)
                for field, value in values.items():
                    setattr(row, field, value)
                self.db.commit()
        else:
            for field, value in values.items():
                setattr(row, field, value)
            self.db.commit()
        self.db.refresh(row)
        return UserProgressRecord.model_validate(row)

    def list_user_progress(self, user_id: int) -> List[UserProgressRecord]:
        rows = self.db.query(UserProgress).filter(
            UserProgress.user_id == user_id
        ).order_by(UserProgress.id).all()
        return [UserProgressRecord.model_validate(r) for r in rows]

    def list_user_progress_by_chapter(self, user_id: int, chapter_id: int) -> List[UserProgressRecord]:
        rows = self.db.query(UserProgress).filter(
            UserProgress.user_id == user_id,
            UserProgress.chapter_id == chapter_id
        ).order_by(UserProgress.id).all()
        return [UserProgressRecord.model_validate(r) for r in rows]

    # Study sessions

    def create_study_session(
        self,
        user_id: int,
        chapter_id: int,
        topic_id: Optional[int],
        duration: int,
        started_at: datetime,
    ) -> StudySessionRecord:
        session = StudySession(
            user_id=user_id,
            chapter_id=chapter_id,
            topic_id=topic_id,
            duration=duration,
            started_at=started_at,
        )
        return StudySessionRecord.model_validate(self._add(session))

    def list_study_sessions_by_user(self, user_id: int) -> List[StudySessionRecord]:
        sessions = self.db.query(StudySession).filter(
            StudySession.user_id == user_id
        ).order_by(StudySession.started_at.desc(), StudySession.id.desc()).all()
        return [StudySessionRecord.model_validate(s) for s in sessions]

    # Activity log

    def create_activity_log(
        self,
        user_id: int,
        activity: str,
        entity_type: Optional[str],
        entity_id: Optional[int],
        metadata: Optional[Dict[str, Any]],
        created_at: datetime,
    ) -> ActivityLogRecord:
        entry = ActivityLog(
            user_id=user_id,
            activity=activity,
            entity_type=entity_type,
            entity_id=entity_id,
            details=metadata,
            created_at=created_at,
        )
        return _activity_record(self._add(entry))

    def list_recent_activities(self, user_id: int, limit: int) -> List[ActivityLogRecord]:
        entries = self.db.query(ActivityLog).filter(
            ActivityLog.user_id == user_id
        ).order_by(
            ActivityLog.created_at.desc(), ActivityLog.id.desc()
        ).limit(limit).all()
        return [_activity_record(e) for e in entries]
