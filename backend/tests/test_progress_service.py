from __future__ import annotations

from datetime import datetime, timezone

import pytest

from studyprep.core.errors import ValidationError
from studyprep.schemas import QuizAttemptCreate, StudySessionCreate
from studyprep.services import ActivityRecorder, ProgressService

from tests.utils import at, create_admin, create_chapter, create_question, create_topic, create_user


@pytest.fixture()
def service(storage) -> ProgressService:
    return ProgressService(storage)


@pytest.fixture()
def curriculum(storage):
    ethics = create_chapter(storage, title="Ethics", order=1)
    quant = create_chapter(storage, title="Quantitative Methods", order=2)
    code = create_topic(storage, ethics.id, title="Code of Ethics", order=1)
    standards = create_topic(storage, ethics.id, title="Standards", order=2)
    tvm = create_topic(storage, quant.id, title="Time Value of Money", order=1)
    create_question(storage, code.id)
    return {"ethics": ethics, "quant": quant, "code": code, "standards": standards, "tvm": tvm}


def test_quiz_attempt_for_unknown_topic_is_rejected(service, storage):
    alice = create_user(storage)

    with pytest.raises(ValidationError) as exc:
        service.submit_quiz_attempt(alice.id, QuizAttemptCreate(topic_id=999, score=1, total_questions=2))

    assert exc.value.message == "Topic not found"
    assert storage.list_quiz_attempts_by_user(alice.id) == []


def test_quiz_attempt_updates_progress_and_activity(service, storage, curriculum):
    alice = create_user(storage)
    code = curriculum["code"]

    attempt = service.submit_quiz_attempt(alice.id, QuizAttemptCreate(topic_id=code.id, score=4, total_questions=5))

    assert attempt.score == 4
    assert attempt.completed_at is not None

    [row] = storage.list_user_progress(alice.id)
    assert row.topic_id == code.id
    assert row.chapter_id == curriculum["ethics"].id
    assert row.progress == 80
    assert row.completed is True

    [entry] = storage.list_recent_activities(alice.id, 10)
    assert entry.activity == "Completed quiz on Code of Ethics"
    assert entry.entity_type == "topic"
    assert entry.entity_id == code.id
    assert entry.metadata == {"score": 4, "totalQuestions": 5}


def test_retaking_a_quiz_replaces_progress(service, storage, curriculum):
    alice = create_user(storage)
    code = curriculum["code"]

    service.submit_quiz_attempt(alice.id, QuizAttemptCreate(topic_id=code.id, score=5, total_questions=5))
    service.submit_quiz_attempt(alice.id, QuizAttemptCreate(topic_id=code.id, score=1, total_questions=5))

    [row] = storage.list_user_progress(alice.id)
    assert row.progress == 20
    assert row.completed is False
    assert len(storage.list_quiz_attempts_by_user(alice.id)) == 2


def test_topic_without_chapter_stores_attempt_only(service, storage):
    alice = create_user(storage)
    orphan = create_topic(storage, chapter_id=12345)

    service.submit_quiz_attempt(alice.id, QuizAttemptCreate(topic_id=orphan.id, score=2, total_questions=2))

    assert len(storage.list_quiz_attempts_by_user(alice.id)) == 1
    assert storage.list_user_progress(alice.id) == []
    assert storage.list_recent_activities(alice.id, 10) == []


def test_study_session_validation(service, storage, curriculum):
    alice = create_user(storage)

    with pytest.raises(ValidationError) as exc:
        service.log_study_session(alice.id, StudySessionCreate(chapter_id=999, duration=10))
    assert exc.value.message == "Chapter not found"

    with pytest.raises(ValidationError) as exc:
        service.log_study_session(
            alice.id,
            StudySessionCreate(chapter_id=curriculum["ethics"].id, topic_id=999, duration=10),
        )
    assert exc.value.message == "Topic not found"


def test_study_session_is_recorded(service, storage, curriculum):
    alice = create_user(storage)
    ethics = curriculum["ethics"]

    service.log_study_session(alice.id, StudySessionCreate(chapter_id=ethics.id, duration=30))
    service.log_study_session(
        alice.id,
        StudySessionCreate(chapter_id=ethics.id, topic_id=curriculum["code"].id, duration=15),
    )

    assert len(storage.list_study_sessions_by_user(alice.id)) == 2
    activities = [a.activity for a in storage.list_recent_activities(alice.id, 10)]
    assert sorted(activities) == ["Studied Ethics", "Studied Ethics topic"]
    entry = storage.list_recent_activities(alice.id, 1)[0]
    assert entry.entity_type == "chapter"
    assert entry.entity_id == ethics.id


def test_study_session_start_time_is_stored_as_utc(service, storage, curriculum):
    alice = create_user(storage)
    started = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)

    session = service.log_study_session(
        alice.id,
        StudySessionCreate(chapter_id=curriculum["ethics"].id, duration=5, started_at=started),
    )

    assert session.started_at == datetime(2024, 3, 1, 9, 30)


def test_user_stats(service, storage, curriculum):
    alice = create_user(storage)
    bob = create_user(storage, username="bob", email="bob@example.com")

    service.submit_quiz_attempt(alice.id, QuizAttemptCreate(topic_id=curriculum["code"].id, score=3, total_questions=5))
    service.submit_quiz_attempt(alice.id, QuizAttemptCreate(topic_id=curriculum["standards"].id, score=5, total_questions=5))
    service.submit_quiz_attempt(bob.id, QuizAttemptCreate(topic_id=curriculum["tvm"].id, score=0, total_questions=5))
    service.log_study_session(alice.id, StudySessionCreate(chapter_id=curriculum["ethics"].id, duration=45))

    stats = service.get_user_stats(alice.id)

    assert stats.questions_attempted == 10
    assert stats.accuracy == 80
    assert stats.study_time == 45
    assert [(c.title, c.progress) for c in stats.chapter_progress] == [
        ("Ethics", 80),
        ("Quantitative Methods", 0),
    ]
    assert stats.overall_progress == 40


def test_user_stats_for_new_user(service, storage):
    alice = create_user(storage)

    stats = service.get_user_stats(alice.id)

    assert stats.questions_attempted == 0
    assert stats.accuracy == 0
    assert stats.study_time == 0
    assert stats.overall_progress == 0
    assert stats.chapter_progress == []


def test_admin_stats_counts_students_only(service, storage, curriculum):
    create_user(storage)
    create_user(storage, username="bob", email="bob@example.com")
    create_admin(storage)

    stats = service.get_admin_stats()

    assert stats.total_students == 2
    assert stats.chapters == 2
    assert stats.topics == 3
    assert stats.questions == 1


def test_recent_activities_newest_first_with_limit(storage):
    alice = create_user(storage)
    bob = create_user(storage, username="bob", email="bob@example.com")
    for minute in range(5):
        storage.create_activity_log(alice.id, f"event {minute}", None, None, None, at(minute))
    storage.create_activity_log(bob.id, "bob event", None, None, None, at(10))

    recent = ActivityRecorder(storage).recent(alice.id, limit=3)

    assert [a.activity for a in recent] == ["event 4", "event 3", "event 2"]


def test_activity_ties_break_by_id(storage):
    alice = create_user(storage)
    first = storage.create_activity_log(alice.id, "first", None, None, None, at(0))
    second = storage.create_activity_log(alice.id, "second", None, None, None, at(0))

    recent = ActivityRecorder(storage).recent(alice.id)

    assert [a.id for a in recent] == [second.id, first.id]
