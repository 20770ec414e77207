"""
Curriculum schemas for chapters, topics and questions.
"""

from typing import List, Optional

from pydantic import Field, model_validator

from .base import CamelModel


TITLE_MAX_LENGTH = 255


class ChapterCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str
    order: int = Field(..., ge=1)


class ChapterUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = None
    order: Optional[int] = Field(None, ge=1)


class ChapterRecord(ChapterCreate):
    id: int


class TopicCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str
    chapter_id: int
    order: int = Field(..., ge=1)


class TopicUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = None
    chapter_id: Optional[int] = None
    order: Optional[int] = Field(None, ge=1)


class TopicRecord(TopicCreate):
    id: int


class QuestionCreate(CamelModel):
    text: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=2)
    correct_option: int = Field(..., ge=0)
    explanation: str
    topic_id: int

    @model_validator(mode="after")
    def check_correct_option(self) -> "QuestionCreate":
        if self.correct_option >= len(self.options):
            raise ValueError("correctOption must index one of the options")
        return self


class QuestionUpdate(CamelModel):
    text: Optional[str] = Field(None, min_length=1)
    options: Optional[List[str]] = Field(None, min_length=2)
    correct_option: Optional[int] = Field(None, ge=0)
    explanation: Optional[str] = None
    topic_id: Optional[int] = None


class QuestionRecord(QuestionCreate):
    id: int
