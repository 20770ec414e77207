"""
In-memory storage backend for development and tests.
"""

import itertools
from datetime import datetime
from typing import Any, Dict, List, Optional

from studyprep.core.errors import NotFoundError
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


class MemoryStorage(Storage):
    """
    Dict-backed storage. Ids come from per-table counters starting at 1.
    """

    def __init__(self):
        self.users: Dict[int, UserRecord] = {}
        self.chapters: Dict[int, ChapterRecord] = {}
        self.topics: Dict[int, TopicRecord] = {}
        self.questions: Dict[int, QuestionRecord] = {}
        self.quiz_attempts: Dict[int, QuizAttemptRecord] = {}
        self.user_progress: Dict[int, UserProgressRecord] = {}
        self.study_sessions: Dict[int, StudySessionRecord] = {}
        self.activity_log: Dict[int, ActivityLogRecord] = {}
        self._ids: Dict[str, itertools.count] = {}

    def _next_id(self, table: str) -> int:
        counter = self._ids.setdefault(table, itertools.count(1))
        return next(counter)

    # Users

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        return self.users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        return next((u for u in self.users.values() if u.username == username), None)

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        return next((u for u in self.users.values() if u.email == email), None)

    def create_user(self, data: UserCreate) -> UserRecord:
        user = UserRecord(id=self._next_id("users"), **data.model_dump())
        self.users[user.id] = user
        return user

    def list_users(self) -> List[UserRecord]:
        return sorted(self.users.values(), key=lambda u: u.id)

    def count_users(self, role: Optional[str] = None) -> int:
        if role is None:
            return len(self.users)
        return sum(1 for u in self.users.values() if u.role == role)

    def update_user_last_login(self, user_id: int, at: datetime) -> None:
        user = self.users.get(user_id)
        if user:
            self.users[user_id] = user.model_copy(update={"last_login": at})

    def set_password_reset_token(self, user_id: int, token: str, expires_at: datetime) -> None:
        user = self.users.get(user_id)
        if user:
            self.users[user_id] = user.model_copy(
                update={"reset_token": token, "reset_token_expiry": expires_at}
            )

    def reset_password_with_token(self, token: str, password_hash: str, now: datetime) -> bool:
        for user in self.users.values():
            if (
                user.reset_token == token
                and user.reset_token_expiry is not None
                and user.reset_token_expiry > now
            ):
                self.users[user.id] = user.model_copy(update={
                    "password": password_hash,
                    "reset_token": None,
                    "reset_token_expiry": None,
                })
                return True
        return False

    # Chapters

    def create_chapter(self, data: ChapterCreate) -> ChapterRecord:
        chapter = ChapterRecord(id=self._next_id("chapters"), **data.model_dump())
        self.chapters[chapter.id] = chapter
        return chapter

    def get_chapter(self, chapter_id: int) -> Optional[ChapterRecord]:
        return self.chapters.get(chapter_id)

    def list_chapters(self) -> List[ChapterRecord]:
        return sorted(self.chapters.values(), key=lambda c: (c.order, c.id))

    def update_chapter(self, chapter_id: int, changes: Dict[str, Any]) -> ChapterRecord:
        chapter = self.chapters.get(chapter_id)
        if chapter is None:
            raise NotFoundError(f"Chapter with id {chapter_id} not found")
        updated = chapter.model_copy(update=changes)
        self.chapters[chapter_id] = updated
        return updated

    def delete_chapter(self, chapter_id: int) -> None:
        for topic in self.list_topics_by_chapter(chapter_id):
            self.delete_topic(topic.id)
        self.chapters.pop(chapter_id, None)

    def count_chapters(self) -> int:
        return len(self.chapters)

    # Topics

    def create_topic(self, data: TopicCreate) -> TopicRecord:
        topic = TopicRecord(id=self._next_id("topics"), **data.model_dump())
        self.topics[topic.id] = topic
        return topic

    def get_topic(self, topic_id: int) -> Optional[TopicRecord]:
        return self.topics.get(topic_id)

    def list_topics(self) -> List[TopicRecord]:
        return sorted(self.topics.values(), key=lambda t: (t.order, t.id))

    def list_topics_by_chapter(self, chapter_id: int) -> List[TopicRecord]:
        return [t for t in self.list_topics() if t.chapter_id == chapter_id]

    def update_topic(self, topic_id: int, changes: Dict[str, Any]) -> TopicRecord:
        topic = self.topics.get(topic_id)
        if topic is None:
            raise NotFoundError(f"Topic with id {topic_id} not found")
        updated = topic.model_copy(update=changes)
        self.topics[topic_id] = updated
        return updated

    def delete_topic(self, topic_id: int) -> None:
        for question in self.list_questions_by_topic(topic_id):
            self.delete_question(question.id)
        self.topics.pop(topic_id, None)

    def count_topics(self) -> int:
        return len(self.topics)

    # Questions

    def create_question(self, data: QuestionCreate) -> QuestionRecord:
        question = QuestionRecord(id=self._next_id("questions"), **data.model_dump())
        self.questions[question.id] = question
        return question

    def get_question(self, question_id: int) -> Optional[QuestionRecord]:
        return self.questions.get(question_id)

    def list_questions(self) -> List[QuestionRecord]:
        return sorted(self.questions.values(), key=lambda q: q.id)

    def list_questions_by_topic(self, topic_id: int) -> List[QuestionRecord]:
        return [q for q in self.list_questions() if q.topic_id == topic_id]

    def update_question(self, question_id: int, changes: Dict[str, Any]) -> QuestionRecord:
        question = self.questions.get(question_id)
        if question is None:
            raise NotFoundError(f"Question with id {question_id} not found")
        updated = question.model_copy(update=changes)
        self.questions[question_id] = updated
        return updated

    def delete_question(self, question_id: int) -> None:
        self.questions.pop(question_id, None)

    def count_questions(self) -> int:
        return len(self.questions)

    # Quiz attempts

    def create_quiz_attempt(
        self,
        user_id: int,
        topic_id: int,
        score: int,
        total_questions: int,
        completed_at: datetime,
    ) -> QuizAttemptRecord:
        attempt = QuizAttemptRecord(
            id=self._next_id("quiz_attempts"),
            user_id=user_id,
            topic_id=topic_id,
            score=score,
            total_questions=total_questions,
            completed_at=completed_at,
        )
        self.quiz_attempts[attempt.id] = attempt
        return attempt

    def list_quiz_attempts_by_user(self, user_id: int) -> List[QuizAttemptRecord]:
        return sorted(
            (a for a in self.quiz_attempts.values() if a.user_id == user_id),
            key=lambda a: (a.completed_at, a.id),
            reverse=True,
        )

    # Topic progress

    def upsert_user_progress(
        self,
        user_id: int,
        chapter_id: int,
        topic_id: int,
        progress: int,
        completed: bool,
        last_activity: datetime,
    ) -> UserProgressRecord:
        existing = next(
            (
                p for p in self.user_progress.values()
                if p.user_id == user_id and p.topic_id == topic_id
            ),
            None,
        )
        if existing is not None:
            row = existing.model_copy(update={
                "chapter_id": chapter_id,
                "progress": progress,
                "completed": completed,
                "last_activity": last_activity,
            })
        else:
            row = UserProgressRecord(
                id=self._next_id("user_progress"),
                user_id=user_id,
                chapter_id=chapter_id,
                topic_id=topic_id,
                progress=progress,
                completed=completed,
                last_activity=last_activity,
            )
        self.user_progress[row.id] = row
        return row

    def list_user_progress(self, user_id: int) -> List[UserProgressRecord]:
        return [p for p in self.user_progress.values() if p.user_id == user_id]

    def list_user_progress_by_chapter(self, user_id: int, chapter_id: int) -> List[UserProgressRecord]:
        return [p for p in self.list_user_progress(user_id) if p.chapter_id == chapter_id]

    # Study sessions

    def create_study_session(
        self,
        user_id: int,
        chapter_id: int,
        topic_id: Optional[int],
        duration: int,
        started_at: datetime,
    ) -> StudySessionRecord:
        session = StudySessionRecord(
            id=self._next_id("study_sessions"),
            user_id=user_id,
            chapter_id=chapter_id,
            topic_id=topic_id,
            duration=duration,
            started_at=started_at,
        )
        self.study_sessions[session.id] = session
        return session

    def list_study_sessions_by_user(self, user_id: int) -> List[StudySessionRecord]:
        return sorted(
            (s for s in self.study_sessions.values() if s.user_id == user_id),
            key=lambda s: (s.started_at, s.id),
            reverse=True,
        )

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
        entry = ActivityLogRecord(
            id=self._next_id("activity_log"),
            user_id=user_id,
            activity=activity,
            entity_type=entity_type,
            entity_id=entity_id,
            metadata=metadata,
            created_at=created_at,
        )
        self.activity_log[entry.id] = entry
        return entry

    def list_recent_activities(self, user_id: int, limit: int) -> List[ActivityLogRecord]:
        entries = sorted(
            (e for e in self.activity_log.values() if e.user_id == user_id),
            key=lambda e: (e.created_at, e.id),
            reverse=True,
        )
        return entries[:limit]
