from __future__ import annotations

import pytest

from studyprep.schemas import (
    ChapterProgress,
    ChapterRecord,
    QuizAttemptRecord,
    StudySessionRecord,
    TopicRecord,
    UserProgressRecord,
)
from studyprep.services import aggregation

from tests.utils import at


def chapter(id: int, order: int | None = None) -> ChapterRecord:
    return ChapterRecord(id=id, title=f"Chapter {id}", description="", order=order or id)


def topic(id: int, chapter_id: int) -> TopicRecord:
    return TopicRecord(id=id, title=f"Topic {id}", description="", chapter_id=chapter_id, order=1)


def progress(topic_id: int, chapter_id: int, value: int) -> UserProgressRecord:
    return UserProgressRecord(id=topic_id, user_id=1, chapter_id=chapter_id, topic_id=topic_id, progress=value)


def attempt(score: int, total: int) -> QuizAttemptRecord:
    return QuizAttemptRecord(id=1, user_id=1, topic_id=1, score=score, total_questions=total, completed_at=at(0))


@pytest.mark.parametrize("value, expected", [(2.5, 3), (3.5, 4), (0.5, 1), (66.666, 67), (0.49, 0)])
def test_round_half_up(value, expected):
    assert aggregation.round_half_up(value) == expected


@pytest.mark.parametrize("score, total, expected", [
    (4, 5, (80, True)),
    (3, 5, (60, False)),
    (2, 3, (67, False)),
    (5, 5, (100, True)),
    (0, 4, (0, False)),
])
def test_topic_progress(score, total, expected):
    assert aggregation.topic_progress(score, total) == expected


def test_chapter_progress_rules():
    chapters = [chapter(1), chapter(2), chapter(3)]
    topics = [topic(10, 1), topic(11, 1), topic(12, 1), topic(20, 2)]
    rows = [progress(10, 1, 100), progress(11, 1, 55)]

    result = aggregation.chapter_progress(chapters, topics, rows)

    # chapter 3 has no topics; chapter 2 has a topic but no progress
    assert result == [
        ChapterProgress(chapter_id=1, title="Chapter 1", progress=78),
        ChapterProgress(chapter_id=2, title="Chapter 2", progress=0),
    ]


def test_chapter_progress_keeps_chapter_order():
    chapters = [chapter(2, order=1), chapter(1, order=2)]
    topics = [topic(10, 1), topic(20, 2)]

    result = aggregation.chapter_progress(chapters, topics, [])

    assert [c.chapter_id for c in result] == [2, 1]


def test_overall_progress():
    assert aggregation.overall_progress([]) == 0
    assert aggregation.overall_progress([
        ChapterProgress(chapter_id=1, title="a", progress=60),
        ChapterProgress(chapter_id=2, title="b", progress=15),
    ]) == 38


def test_accuracy_and_questions_attempted():
    attempts = [attempt(3, 5), attempt(5, 5), attempt(1, 3)]

    assert aggregation.questions_attempted(attempts) == 13
    assert aggregation.accuracy(attempts) == 69
    assert aggregation.accuracy([]) == 0
    assert aggregation.questions_attempted([]) == 0


def test_study_time_sums_minutes():
    sessions = [
        StudySessionRecord(id=1, user_id=1, chapter_id=1, duration=25, started_at=at(0)),
        StudySessionRecord(id=2, user_id=1, chapter_id=1, topic_id=3, duration=40, started_at=at(1)),
    ]

    assert aggregation.study_time(sessions) == 65
    assert aggregation.study_time([]) == 0
