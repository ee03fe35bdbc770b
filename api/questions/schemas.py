"""
Question API schemas (request/response models).

Foreign keys are camelCase on the wire (`categoryId`, `questionId`).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AnswerRequest(BaseModel):
    answer: str = Field(..., min_length=1, max_length=2000)
    correct: bool


class QuestionCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str = Field(..., min_length=1, max_length=2000)
    category_id: int = Field(..., alias="categoryId", gt=0)
    answers: list[AnswerRequest] = Field(default_factory=list)


class QuestionUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str | None = Field(default=None, min_length=1, max_length=2000)
    category_id: int | None = Field(default=None, alias="categoryId", gt=0)


class AnswerResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    answer: str
    correct: bool
    question_id: int = Field(..., alias="questionId")


class CategorySummary(BaseModel):
    id: int
    slug: str
    title: str
    description: str | None = None


class QuestionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    question: str
    category_id: int = Field(..., alias="categoryId")
    answers: list[AnswerResponse] = Field(default_factory=list)


class QuestionWithCategoryResponse(QuestionResponse):
    category: CategorySummary | None = None
