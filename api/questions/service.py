"""
Question write rules.

A question and its answers are always written together in one
transaction. Answers are immutable once created; they only go away with
their question.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from core import errors
from core.store import EntityStore, Row, StoreTransaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnswerInput:
    answer: str
    correct: bool


@dataclass(frozen=True)
class QuestionPatch:
    """
    Partial update for a question. `None` means "not supplied".
    """

    question: str | None = None
    category_id: int | None = None

    def fields(self) -> dict[str, Any]:
        values = {"question": self.question, "category_id": self.category_id}
        return {name: value for name, value in values.items() if value is not None}


def _require_text(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise errors.ValidationError(f"{field} must be a non-empty string.", field=field)
    return value


def _category_missing(category_id: int) -> errors.DependencyError:
    return errors.DependencyError(
        f"Category {category_id} not found.",
        field="categoryId",
        constraint="questions_category_id_fkey",
    )


def with_answers(question: Row, answers: list[Row]) -> Row:
    return {**question, "answers": answers}


async def insert_question_tree(
    tx: StoreTransaction,
    *,
    category_id: int,
    text: str,
    answers: list[AnswerInput],
) -> Row:
    """
    Insert a question and all of its answers inside the caller's transaction.
    """
    if await tx.get_category(category_id) is None:
        raise _category_missing(category_id)
    question = await tx.insert_question(category_id=category_id, text=text)
    answer_rows = await tx.insert_answers(
        int(question["id"]),
        [(a.answer, bool(a.correct)) for a in answers],
    )
    return with_answers(question, answer_rows)


async def create_question(
    store: EntityStore,
    *,
    question: str,
    category_id: int,
    answers: list[AnswerInput],
) -> Row:
    question = _require_text(question, field="question")
    category_id = errors.parse_id(category_id, field="categoryId")
    for i, answer in enumerate(answers):
        _require_text(answer.answer, field=f"answers[{i}].answer")

    async with store.transaction() as tx:
        row = await insert_question_tree(tx, category_id=category_id, text=question, answers=answers)

    logger.info(
        "question_created id=%s category_id=%s answers=%s",
        row["id"],
        category_id,
        len(row["answers"]),
    )
    return row


async def update_question(store: EntityStore, question_id: int, patch: QuestionPatch) -> Row:
    fields = patch.fields()
    if "question" in fields:
        _require_text(fields["question"], field="question")
    if "category_id" in fields:
        fields["category_id"] = errors.parse_id(fields["category_id"], field="categoryId")

    async with store.transaction() as tx:
        row = await tx.get_question(question_id)
        if row is None:
            raise errors.NotFoundError("Question not found.", field="id")

        if fields:
            if "category_id" in fields and await tx.get_category(fields["category_id"]) is None:
                raise _category_missing(fields["category_id"])
            row = await tx.update_question(question_id, fields)
            if row is None:
                raise errors.NotFoundError("Question not found.", field="id")

        answers = await tx.list_answers([question_id])

    if fields:
        logger.info("question_updated id=%s fields=%s", question_id, sorted(fields))
    return with_answers(row, answers)


async def delete_question(store: EntityStore, question_id: int) -> None:
    async with store.transaction() as tx:
        if await tx.get_question(question_id) is None:
            raise errors.NotFoundError("Question not found.", field="id")
        answers = await tx.delete_answers_for_question(question_id)
        if not await tx.delete_question(question_id):
            raise errors.NotFoundError("Question not found.", field="id")

    logger.info("question_deleted id=%s answers=%s", question_id, answers)
