"""
Storage interface for StudyPrep.

Both backends (in-memory and SQL) implement this contract and return the
same pydantic records, so services and aggregation never see ORM objects.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

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


class Storage(ABC):
    """
    Persistence contract used by the services.

    Deleting a chapter or topic removes its descendants explicitly:
    grandchildren first, then children, then the parent.
    """

    # Users

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[UserRecord]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[UserRecord]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[UserRecord]: ...

    @abstractmethod
    def create_user(self, data: UserCreate) -> UserRecord: ...

    @abstractmethod
    def list_users(self) -> List[UserRecord]: ...

    @abstractmethod
    def count_users(self, role: Optional[str] = None) -> int: ...

    @abstractmethod
    def update_user_last_login(self, user_id: int, at: datetime) -> None: ...

    @abstractmethod
    def set_password_reset_token(self, user_id: int, token: str, expires_at: datetime) -> None: ...

    @abstractmethod
    def reset_password_with_token(self, token: str, password_hash: str, now: datetime) -> bool:
        """
        Replace the password of the user holding ``token`` if it has not
        expired at ``now``, clearing the reset fields in the same write.

        Returns False when no user matched.
        """

    # Chapters

    @abstractmethod
    def create_chapter(self, data: ChapterCreate) -> ChapterRecord: ...

    @abstractmethod
    def get_chapter(self, chapter_id: int) -> Optional[ChapterRecord]: ...

    @abstractmethod
    def list_chapters(self) -> List[ChapterRecord]:
        """All chapters ordered by ``order``."""

    @abstractmethod
    def update_chapter(self, chapter_id: int, changes: Dict[str, Any]) -> ChapterRecord: ...

    @abstractmethod
    def delete_chapter(self, chapter_id: int) -> None: ...

    @abstractmethod
    def count_chapters(self) -> int: ...

    # Topics

    @abstractmethod
    def create_topic(self, data: TopicCreate) -> TopicRecord: ...

    @abstractmethod
    def get_topic(self, topic_id: int) -> Optional[TopicRecord]: ...

    @abstractmethod
    def list_topics(self) -> List[TopicRecord]: ...

    @abstractmethod
    def list_topics_by_chapter(self, chapter_id: int) -> List[TopicRecord]: ...

    @abstractmethod
    def update_topic(self, topic_id: int, changes: Dict[str, Any]) -> TopicRecord: ...

    @abstractmethod
    def delete_topic(self, topic_id: int) -> None: ...

    @abstractmethod
    def count_topics(self) -> int: ...

    # Questions

    @abstractmethod
    def create_question(self, data: QuestionCreate) -> QuestionRecord: ...

    @abstractmethod
    def get_question(self, question_id: int) -> Optional[QuestionRecord]: ...

    @abstractmethod
    def list_questions(self) -> List[QuestionRecord]: ...

    @abstractmethod
    def list_questions_by_topic(self, topic_id: int) -> List[QuestionRecord]: ...

    @abstractmethod
    def update_question(self, question_id: int, changes: Dict[str, Any]) -> QuestionRecord: ...

    @abstractmethod
    def delete_question(self, question_id: int) -> None: ...

    @abstractmethod
    def count_questions(self) -> int: ...

    # Quiz attempts

    @abstractmethod
    def create_quiz_attempt(
        self,
        user_id: int,
        topic_id: int,
        score: int,
        total_questions: int,
        completed_at: datetime,
    ) -> QuizAttemptRecord: ...

    @abstractmethod
    def list_quiz_attempts_by_user(self, user_id: int) -> List[QuizAttemptRecord]:
        """Newest first."""

    # Topic progress

    @abstractmethod
    def upsert_user_progress(
        self,
        user_id: int,
        chapter_id: int,
        topic_id: int,
        progress: int,
        completed: bool,
        last_activity: datetime,
    ) -> UserProgressRecord:
        """Create or replace the single row for (user_id, topic_id)."""

    @abstractmethod
    def list_user_progress(self, user_id: int) -> List[UserProgressRecord]: ...

    @abstractmethod
    def list_user_progress_by_chapter(self, user_id: int, chapter_id: int) -> List[UserProgressRecord]: ...

    # Study sessions

    @abstractmethod
    def create_study_session(
        self,
        user_id: int,
        chapter_id: int,
        topic_id: Optional[int],
        duration: int,
        started_at: datetime,
    ) -> StudySessionRecord: ...

    @abstractmethod
    def list_study_sessions_by_user(self, user_id: int) -> List[StudySessionRecord]:
        """Newest first."""

    # Activity log

    @abstractmethod
    def create_activity_log(
        self,
        user_id: int,
        activity: str,
        entity_type: Optional[str],
        entity_id: Optional[int],
        metadata: Optional[Dict[str, Any]],
        created_at: datetime,
    ) -> ActivityLogRecord: ...

    @abstractmethod
    def list_recent_activities(self, user_id: int, limit: int) -> List[ActivityLogRecord]:
        """Newest first, at most ``limit`` entries."""
