"""
Read-only projections for the HTTP layer.

Each function reads inside one read-only transaction so the nested
result (category -> questions -> answers) is a single consistent
snapshot.
"""

from __future__ import annotations

from collections import defaultdict

from core import errors
from core.store import EntityStore, Row, StoreTransaction


async def _attach_answers(tx: StoreTransaction, questions: list[Row]) -> list[Row]:
    answers = await tx.list_answers([int(q["id"]) for q in questions])
    by_question: dict[int, list[Row]] = defaultdict(list)
    for answer in answers:
        by_question[int(answer["question_id"])].append(answer)
    return [{**q, "answers": by_question.get(int(q["id"]), [])} for q in questions]


async def list_categories(store: EntityStore) -> list[Row]:
    async with store.transaction(readonly=True) as tx:
        return await tx.list_categories()


async def get_category_by_slug(store: EntityStore, slug: str) -> Row:
    async with store.transaction(readonly=True) as tx:
        category = await tx.get_category_by_slug(slug)
        if category is None:
            raise errors.NotFoundError("Category not found.", field="slug")
        questions = await tx.list_questions(category_id=int(category["id"]))
        questions = await _attach_answers(tx, questions)
    return {**category, "questions": questions}


async def list_questions(
    store: EntityStore,
    *,
    category_id: int | None = None,
    category_slug: str | None = None,
) -> list[Row]:
    """
    Questions with their answers, optionally limited to one category.

    A filter that matches no category is a NotFoundError, not an empty
    list. Each question also carries its category.
    """
    async with store.transaction(readonly=True) as tx:
        category = None
        if category_slug is not None:
            category = await tx.get_category_by_slug(category_slug)
            if category is None:
                raise errors.NotFoundError("Category not found.", field="slug")
        elif category_id is not None:
            category = await tx.get_category(category_id)
            if category is None:
                raise errors.NotFoundError("Category not found.", field="categoryId")

        if category is not None:
            questions = await tx.list_questions(category_id=int(category["id"]))
            questions = await _attach_answers(tx, questions)
            return [{**q, "category": category} for q in questions]

        questions = await _attach_answers(tx, await tx.list_questions())
        categories = {int(c["id"]): c for c in await tx.list_categories()}

    return [{**q, "category": categories.get(int(q["category_id"]))} for q in questions]


async def get_question(store: EntityStore, question_id: int) -> Row:
    async with store.transaction(readonly=True) as tx:
        question = await tx.get_question(question_id)
        if question is None:
            raise errors.NotFoundError("Question not found.", field="id")
        answers = await tx.list_answers([question_id])
    return {**question, "answers": answers}
