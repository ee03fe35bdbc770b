"""
Category API schemas (request/response models).
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from questions.schemas import CategorySummary, QuestionResponse


class CategoryCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    # Derived from the title when omitted.
    slug: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)


class CategoryUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    slug: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)


class CategoryResponse(CategorySummary):
    pass


class CategoryDetailResponse(CategoryResponse):
    questions: list[QuestionResponse] = Field(default_factory=list)
