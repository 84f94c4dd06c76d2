"""Pydantic schemas for product questions and answers."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field, field_validator

from storefront.core.sanitize import clean_multiline

MAX_QUESTION_LEN = 2000
MAX_ANSWER_LEN = 4000


def _required_text(value: str | None) -> str:
    cleaned = clean_multiline(value)
    if not cleaned:
        raise ValueError("text_required")
    return cleaned


class QnAOut(BaseModel):
    id: int
    product_id: int
    user_name: str
    question: str | None = None
    answer: str | None = None
    is_secret: bool
    is_answered: bool
    can_view: bool
    can_edit: bool = False
    can_delete: bool = False
    created_at: dt.datetime
    updated_at: dt.datetime | None = None
    answered_at: dt.datetime | None = None


class QnAPageOut(BaseModel):
    items: list[QnAOut]
    current_page: int
    total_pages: int
    total_count: int


class AdminQnAOut(BaseModel):
    id: int
    product_id: int
    product_name: str | None = None
    user_name: str
    question: str
    answer: str | None = None
    is_secret: bool
    is_answered: bool
    created_at: dt.datetime
    answered_at: dt.datetime | None = None


class AdminQnAPageOut(BaseModel):
    items: list[AdminQnAOut]
    current_page: int
    total_pages: int
    total_count: int
    unanswered_only: bool = False


class UnansweredCountOut(BaseModel):
    count: int


class QuestionCreate(BaseModel):
    question: str = Field(min_length=1, max_length=MAX_QUESTION_LEN)
    is_secret: bool = False

    @field_validator("question", mode="before")
    @classmethod
    def normalize_question(cls, value: str) -> str:
        return _required_text(value)


class QuestionUpdate(QuestionCreate):
    pass


class AnswerRequest(BaseModel):
    answer: str = Field(min_length=1, max_length=MAX_ANSWER_LEN)

    @field_validator("answer", mode="before")
    @classmethod
    def normalize_answer(cls, value: str) -> str:
        return _required_text(value)
