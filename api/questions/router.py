"""
Question API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from core import errors
from core.store import EntityStore, get_store
from queries import service as queries

from . import schemas, service

router = APIRouter()


@router.get("/questions", response_model=list[schemas.QuestionWithCategoryResponse])
async def list_questions(
    category: str | None = Query(default=None, min_length=1, max_length=200),
    category_id: str | None = Query(default=None, alias="categoryId"),
    store: EntityStore = Depends(get_store),
) -> list[dict]:
    parsed_id = errors.parse_id(category_id, field="categoryId") if category_id is not None else None
    return await queries.list_questions(store, category_id=parsed_id, category_slug=category)


@router.get("/questions/category/{slug}", response_model=list[schemas.QuestionResponse])
async def list_questions_for_category(slug: str, store: EntityStore = Depends(get_store)) -> list[dict]:
    return await queries.list_questions(store, category_slug=slug)


@router.get("/questions/{question_id}", response_model=schemas.QuestionResponse)
async def get_question(question_id: str, store: EntityStore = Depends(get_store)) -> dict:
    return await queries.get_question(store, errors.parse_id(question_id))


@router.post(
    "/question",
    status_code=status.HTTP_201_CREATED,
    response_model=schemas.QuestionResponse,
)
async def create_question(
    request: schemas.QuestionCreateRequest,
    store: EntityStore = Depends(get_store),
) -> dict:
    return await service.create_question(
        store,
        question=request.question,
        category_id=request.category_id,
        answers=[service.AnswerInput(answer=a.answer, correct=a.correct) for a in request.answers],
    )


@router.patch("/question/{question_id}", response_model=schemas.QuestionResponse)
async def update_question(
    question_id: str,
    request: schemas.QuestionUpdateRequest,
    store: EntityStore = Depends(get_store),
) -> dict:
    patch = service.QuestionPatch(question=request.question, category_id=request.category_id)
    return await service.update_question(store, errors.parse_id(question_id), patch)


@router.delete("/question/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_question(question_id: str, store: EntityStore = Depends(get_store)) -> Response:
    await service.delete_question(store, errors.parse_id(question_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
