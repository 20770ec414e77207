"""Utility helpers for test factories."""

from __future__ import annotations

from datetime import datetime

from studyprep.core.security import hash_password
from studyprep.models.user import UserRole
from studyprep.schemas import (
    ChapterCreate,
    ChapterRecord,
    QuestionCreate,
    QuestionRecord,
    TopicCreate,
    TopicRecord,
    UserCreate,
    UserRecord,
)
from studyprep.storage import Storage


PASSWORD = "secret-password"
ADMIN_PASSWORD = "admin-password"
PASSWORD_HASH = hash_password(PASSWORD)


def create_user(storage: Storage, **kwargs) -> UserRecord:
    defaults = {
        "username": "alice",
        "email": "alice@example.com",
        "password": PASSWORD_HASH,
        "name": "Alice",
        "role": UserRole.STUDENT,
    }
    defaults.update(kwargs)
    return storage.create_user(UserCreate(**defaults))


def create_admin(storage: Storage, **kwargs) -> UserRecord:
    defaults = {
        "username": "root",
        "email": "root@example.com",
        "name": "Root",
        "role": UserRole.ADMIN,
    }
    defaults.update(kwargs)
    return create_user(storage, **defaults)


def create_chapter(storage: Storage, **kwargs) -> ChapterRecord:
    defaults = {"title": "Ethics", "description": "Standards of practice", "order": 1}
    defaults.update(kwargs)
    return storage.create_chapter(ChapterCreate(**defaults))


def create_topic(storage: Storage, chapter_id: int, **kwargs) -> TopicRecord:
    defaults = {"title": "Code of Ethics", "description": "The code", "order": 1}
    defaults.update(kwargs)
    return storage.create_topic(TopicCreate(chapter_id=chapter_id, **defaults))


def create_question(storage: Storage, topic_id: int, **kwargs) -> QuestionRecord:
    defaults = {
        "text": "Which standard covers loyalty?",
        "options": ["I(A)", "III(A)", "V(B)"],
        "correct_option": 1,
        "explanation": "Duty of loyalty to clients.",
    }
    defaults.update(kwargs)
    return storage.create_question(QuestionCreate(topic_id=topic_id, **defaults))


def at(minute: int) -> datetime:
    """Fixed timestamps for ordering tests."""
    return datetime(2024, 1, 1, 12, minute)
