"""
Progress and statistics calculations.

Pure functions over storage records; nothing here touches storage. All
percentages are integers rounded half-up (2.5 -> 3), not with Python's
banker's rounding.
"""

import math
from collections import defaultdict
from typing import Dict, Iterable, List, Sequence, Tuple

from studyprep.schemas import (
    ChapterRecord,
    TopicRecord,
    UserProgressRecord,
    QuizAttemptRecord,
    StudySessionRecord,
    ChapterProgress,
)


# A topic counts as completed once a quiz on it scores at least this percentage
COMPLETION_THRESHOLD = 80


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percentage(part: float, whole: float) -> int:
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)


def topic_progress(score: int, total_questions: int) -> Tuple[int, bool]:
    """
    Progress for a single quiz attempt.

    Returns:
        Tuple[int, bool]: rounded percentage and whether it reaches
        ``COMPLETION_THRESHOLD``
    """
    pct = percentage(score, total_questions)
    return pct, pct >= COMPLETION_THRESHOLD


def chapter_progress(
    chapters: Sequence[ChapterRecord],
    topics: Iterable[TopicRecord],
    progress_rows: Iterable[UserProgressRecord],
) -> List[ChapterProgress]:
    """
    Per-chapter progress for one user, in the order of ``chapters``.

    Chapters without topics are left out. A chapter whose topics have no
    progress rows reports 0; otherwise its value is the mean progress of
    the topics that do have a row.
    """
    topics_by_chapter: Dict[int, List[int]] = defaultdict(list)
    for topic in topics:
        topics_by_chapter[topic.chapter_id].append(topic.id)

    progress_by_topic = {row.topic_id: row.progress for row in progress_rows}

    result = []
    for chapter in chapters:
        topic_ids = topics_by_chapter.get(chapter.id)
        if not topic_ids:
            continue
        values = [progress_by_topic[t] for t in topic_ids if t in progress_by_topic]
        value = round_half_up(sum(values) / len(values)) if values else 0
        result.append(ChapterProgress(chapter_id=chapter.id, title=chapter.title, progress=value))
    return result


def overall_progress(chapters: Sequence[ChapterProgress]) -> int:
    if not chapters:
        return 0
    return round_half_up(sum(c.progress for c in chapters) / len(chapters))


def questions_attempted(attempts: Iterable[QuizAttemptRecord]) -> int:
    return sum(a.total_questions for a in attempts)


def accuracy(attempts: Sequence[QuizAttemptRecord]) -> int:
    """Correct answers over questions attempted, across all attempts."""
    correct = sum(a.score for a in attempts)
    return percentage(correct, questions_attempted(attempts))


def study_time(sessions: Iterable[StudySessionRecord]) -> int:
    """Total minutes studied."""
    return sum(s.duration for s in sessions)
