"""
Curriculum router for StudyPrep.

Chapters, topics and questions. Any signed-in user can read; only admins
can write. Deleting a chapter or topic also deletes everything under it.
"""

import logging
from typing import List

import pydantic
from fastapi import APIRouter, Depends, Response, status

from studyprep.core.errors import NotFoundError, ValidationError
from studyprep.dependencies import (
    Identity,
    get_storage,
    require_admin,
    require_authenticated,
)
from studyprep.schemas import (
    ChapterCreate,
    ChapterRecord,
    ChapterUpdate,
    QuestionCreate,
    QuestionRecord,
    QuestionUpdate,
    TopicCreate,
    TopicRecord,
    TopicUpdate,
)
from studyprep.storage import Storage


logger = logging.getLogger(__name__)

router = APIRouter()


def _get_chapter_or_404(storage: Storage, chapter_id: int) -> ChapterRecord:
    chapter = storage.get_chapter(chapter_id)
    if chapter is None:
        raise NotFoundError("Chapter not found")
    return chapter


def _get_topic_or_404(storage: Storage, topic_id: int) -> TopicRecord:
    topic = storage.get_topic(topic_id)
    if topic is None:
        raise NotFoundError("Topic not found")
    return topic


def _get_question_or_404(storage: Storage, question_id: int) -> QuestionRecord:
    question = storage.get_question(question_id)
    if question is None:
        raise NotFoundError("Question not found")
    return question


# Chapters

@router.get("/chapters", response_model=List[ChapterRecord])
def list_chapters(
    identity: Identity = Depends(require_authenticated),
    storage: Storage = Depends(get_storage)
) -> List[ChapterRecord]:
    return storage.list_chapters()


@router.get("/chapters/{chapter_id}", response_model=ChapterRecord)
def get_chapter(
    chapter_id: int,
    identity: Identity = Depends(require_authenticated),
    storage: Storage = Depends(get_storage)
) -> ChapterRecord:
    return _get_chapter_or_404(storage, chapter_id)


@router.post("/chapters", response_model=ChapterRecord, status_code=status.HTTP_201_CREATED)
def create_chapter(
    chapter_data: ChapterCreate,
    identity: Identity = Depends(require_admin),
    storage: Storage = Depends(get_storage)
) -> ChapterRecord:
    chapter = storage.create_chapter(chapter_data)
    logger.info(f"Admin {identity.user_id} created chapter {chapter.id}")
    return chapter


@router.put("/chapters/{chapter_id}", response_model=ChapterRecord)
def update_chapter(
    chapter_id: int,
    chapter_data: ChapterUpdate,
    identity: Identity = Depends(require_admin),
    storage: Storage = Depends(get_storage)
) -> ChapterRecord:
    _get_chapter_or_404(storage, chapter_id)
    changes = chapter_data.model_dump(exclude_unset=True, exclude_none=True)
    return storage.update_chapter(chapter_id, changes)


@router.delete("/chapters/{chapter_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_chapter(
    chapter_id: int,
    identity: Identity = Depends(require_admin),
    storage: Storage = Depends(get_storage)
) -> Response:
    """
    Delete a chapter together with its topics and their questions.
    """
    _get_chapter_or_404(storage, chapter_id)
    storage.delete_chapter(chapter_id)
    logger.info(f"Admin {identity.user_id} deleted chapter {chapter_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Topics

@router.get("/topics", response_model=List[TopicRecord])
def list_topics(
    identity: Identity = Depends(require_authenticated),
    storage: Storage = Depends(get_storage)
) -> List[TopicRecord]:
    return storage.list_topics()


@router.get("/chapters/{chapter_id}/topics", response_model=List[TopicRecord])
def list_chapter_topics(
    chapter_id: int,
    identity: Identity = Depends(require_authenticated),
    storage: Storage = Depends(get_storage)
) -> List[TopicRecord]:
    return storage.list_topics_by_chapter(chapter_id)


@router.get("/topics/{topic_id}", response_model=TopicRecord)
def get_topic(
    topic_id: int,
    identity: Identity = Depends(require_authenticated),
    storage: Storage = Depends(get_storage)
) -> TopicRecord:
    return _get_topic_or_404(storage, topic_id)


@router.post("/topics", response_model=TopicRecord, status_code=status.HTTP_201_CREATED)
def create_topic(
    topic_data: TopicCreate,
    identity: Identity = Depends(require_admin),
    storage: Storage = Depends(get_storage)
) -> TopicRecord:
    if storage.get_chapter(topic_data.chapter_id) is None:
        raise ValidationError("Chapter not found")
    topic = storage.create_topic(topic_data)
    logger.info(f"Admin {identity.user_id} created topic {topic.id} in chapter {topic.chapter_id}")
    return topic


@router.put("/topics/{topic_id}", response_model=TopicRecord)
def update_topic(
    topic_id: int,
    topic_data: TopicUpdate,
    identity: Identity = Depends(require_admin),
    storage: Storage = Depends(get_storage)
) -> TopicRecord:
    _get_topic_or_404(storage, topic_id)
    changes = topic_data.model_dump(exclude_unset=True, exclude_none=True)
    if "chapter_id" in changes and storage.get_chapter(changes["chapter_id"]) is None:
        raise ValidationError("Chapter not found")
    return storage.update_topic(topic_id, changes)


@router.delete("/topics/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_topic(
    topic_id: int,
    identity: Identity = Depends(require_admin),
    storage: Storage = Depends(get_storage)
) -> Response:
    _get_topic_or_404(storage, topic_id)
    storage.delete_topic(topic_id)
    logger.info(f"Admin {identity.user_id} deleted topic {topic_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Questions

@router.get("/questions", response_model=List[QuestionRecord])
def list_questions(
    identity: Identity = Depends(require_admin),
    storage: Storage = Depends(get_storage)
) -> List[QuestionRecord]:
    return storage.list_questions()


@router.get("/topics/{topic_id}/questions", response_model=List[QuestionRecord])
def list_topic_questions(
    topic_id: int,
    identity: Identity = Depends(require_authenticated),
    storage: Storage = Depends(get_storage)
) -> List[QuestionRecord]:
    return storage.list_questions_by_topic(topic_id)


@router.get("/questions/{question_id}", response_model=QuestionRecord)
def get_question(
    question_id: int,
    identity: Identity = Depends(require_authenticated),
    storage: Storage = Depends(get_storage)
) -> QuestionRecord:
    return _get_question_or_404(storage, question_id)


@router.post("/questions", response_model=QuestionRecord, status_code=status.HTTP_201_CREATED)
def create_question(
    question_data: QuestionCreate,
    identity: Identity = Depends(require_admin),
    storage: Storage = Depends(get_storage)
) -> QuestionRecord:
    if storage.get_topic(question_data.topic_id) is None:
        raise ValidationError("Topic not found")
    return storage.create_question(question_data)


@router.put("/questions/{question_id}", response_model=QuestionRecord)
def update_question(
    question_id: int,
    question_data: QuestionUpdate,
    identity: Identity = Depends(require_admin),
    storage: Storage = Depends(get_storage)
) -> QuestionRecord:
    existing = _get_question_or_404(storage, question_id)
    changes = question_data.model_dump(exclude_unset=True, exclude_none=True)
    if "topic_id" in changes and storage.get_topic(changes["topic_id"]) is None:
        raise ValidationError("Topic not found")

    # correctOption must still index the options after a partial update
    merged = existing.model_dump(exclude={"id"}) | changes
    try:
        QuestionCreate.model_validate(merged)
    except pydantic.ValidationError as exc:
        raise ValidationError("Invalid question data") from exc

    return storage.update_question(question_id, changes)


@router.delete("/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_question(
    question_id: int,
    identity: Identity = Depends(require_admin),
    storage: Storage = Depends(get_storage)
) -> Response:
    _get_question_or_404(storage, question_id)
    storage.delete_question(question_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
