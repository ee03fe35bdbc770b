"""
In-process entity store.

Same contract as `PostgresStore`, used by the test suite and for running
the API without a database (`STORE_BACKEND=memory`).

Write transactions are serialized by one asyncio lock and work on a
private copy of the tables; the copy replaces the committed state only
when the block exits cleanly. Readers take the committed state as it is
at the start of their transaction, so they never see half-applied writes.
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from . import errors
from .store import EntityStore, Row, StoreTransaction

CATEGORY_UPDATABLE = ("slug", "title", "description")
QUESTION_UPDATABLE = ("question", "category_id")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _Tables:
    categories: dict[int, Row] = field(default_factory=dict)
    questions: dict[int, Row] = field(default_factory=dict)
    answers: dict[int, Row] = field(default_factory=dict)
    next_ids: dict[str, int] = field(
        default_factory=lambda: {"categories": 1, "questions": 1, "answers": 1}
    )

    def allocate(self, table: str) -> int:
        value = self.next_ids[table]
        self.next_ids[table] = value + 1
        return value


class MemoryTransaction(StoreTransaction):
    def __init__(self, tables: _Tables, *, readonly: bool) -> None:
        self._tables = tables
        self._readonly = readonly

    def _check_writable(self) -> None:
        if self._readonly:
            raise errors.StoreError("Write attempted in a read-only transaction.")

    async def list_categories(self) -> list[Row]:
        await asyncio.sleep(0)
        return [dict(row) for row in self._tables.categories.values()]

    async def get_category(self, category_id: int) -> Row | None:
        await asyncio.sleep(0)
        row = self._tables.categories.get(category_id)
        return dict(row) if row is not None else None

    async def get_category_by_slug(self, slug: str) -> Row | None:
        await asyncio.sleep(0)
        for row in self._tables.categories.values():
            if row["slug"] == slug:
                return dict(row)
        return None

    def _check_slug_free(self, slug: str, *, exclude_id: int | None = None) -> None:
        for row in self._tables.categories.values():
            if row["slug"] == slug and row["id"] != exclude_id:
                raise errors.ConflictError(
                    "Category slug already exists.",
                    field="slug",
                    constraint="categories_slug_key",
                )

    async def insert_category(self, *, slug: str, title: str, description: str | None) -> Row:
        self._check_writable()
        await asyncio.sleep(0)
        self._check_slug_free(slug)
        category_id = self._tables.allocate("categories")
        row = {
            "id": category_id,
            "slug": slug,
            "title": title,
            "description": description,
            "created_at": _utc_now(),
        }
        self._tables.categories[category_id] = row
        return dict(row)

    async def update_category(self, category_id: int, fields: dict[str, Any]) -> Row | None:
        self._check_writable()
        await asyncio.sleep(0)
        row = self._tables.categories.get(category_id)
        if row is None:
            return None
        if "slug" in fields:
            self._check_slug_free(fields["slug"], exclude_id=category_id)
        for name in CATEGORY_UPDATABLE:
            if name in fields:
                row[name] = fields[name]
        return dict(row)

    async def delete_category(self, category_id: int) -> bool:
        self._check_writable()
        await asyncio.sleep(0)
        if category_id not in self._tables.categories:
            return False
        if any(q["category_id"] == category_id for q in self._tables.questions.values()):
            raise errors.DependencyError(
                "Category is still referenced by questions.",
                constraint="questions_category_id_fkey",
            )
        del self._tables.categories[category_id]
        return True

    async def list_questions(self, *, category_id: int | None = None) -> list[Row]:
        await asyncio.sleep(0)
        return [
            dict(row)
            for row in self._tables.questions.values()
            if category_id is None or row["category_id"] == category_id
        ]

    async def get_question(self, question_id: int) -> Row | None:
        await asyncio.sleep(0)
        row = self._tables.questions.get(question_id)
        return dict(row) if row is not None else None

    async def find_question(self, *, category_id: int, text: str) -> Row | None:
        await asyncio.sleep(0)
        for row in self._tables.questions.values():
            if row["category_id"] == category_id and row["question"] == text:
                return dict(row)
        return None

    def _check_category_exists(self, category_id: int) -> None:
        if category_id not in self._tables.categories:
            raise errors.DependencyError(
                "Referenced entity does not exist.",
                field="categoryId",
                constraint="questions_category_id_fkey",
            )

    async def insert_question(self, *, category_id: int, text: str) -> Row:
        self._check_writable()
        await asyncio.sleep(0)
        self._check_category_exists(category_id)
        question_id = self._tables.allocate("questions")
        row = {
            "id": question_id,
            "question": text,
            "category_id": category_id,
            "created_at": _utc_now(),
        }
        self._tables.questions[question_id] = row
        return dict(row)

    async def update_question(self, question_id: int, fields: dict[str, Any]) -> Row | None:
        self._check_writable()
        await asyncio.sleep(0)
        row = self._tables.questions.get(question_id)
        if row is None:
            return None
        if "category_id" in fields:
            self._check_category_exists(fields["category_id"])
        for name in QUESTION_UPDATABLE:
            if name in fields:
                row[name] = fields[name]
        return dict(row)

    async def delete_question(self, question_id: int) -> bool:
        self._check_writable()
        await asyncio.sleep(0)
        if question_id not in self._tables.questions:
            return False
        if any(a["question_id"] == question_id for a in self._tables.answers.values()):
            raise errors.DependencyError(
                "Question is still referenced by answers.",
                constraint="answers_question_id_fkey",
            )
        del self._tables.questions[question_id]
        return True

    async def delete_questions_for_category(self, category_id: int) -> int:
        self._check_writable()
        await asyncio.sleep(0)
        doomed = [qid for qid, q in self._tables.questions.items() if q["category_id"] == category_id]
        if any(a["question_id"] in doomed for a in self._tables.answers.values()):
            raise errors.DependencyError(
                "Questions are still referenced by answers.",
                constraint="answers_question_id_fkey",
            )
        for question_id in doomed:
            del self._tables.questions[question_id]
        return len(doomed)

    async def list_answers(self, question_ids: list[int]) -> list[Row]:
        await asyncio.sleep(0)
        wanted = set(question_ids)
        return [dict(row) for row in self._tables.answers.values() if row["question_id"] in wanted]

    async def insert_answers(self, question_id: int, answers: list[tuple[str, bool]]) -> list[Row]:
        self._check_writable()
        await asyncio.sleep(0)
        if question_id not in self._tables.questions:
            raise errors.DependencyError(
                "Referenced entity does not exist.",
                field="questionId",
                constraint="answers_question_id_fkey",
            )
        rows: list[Row] = []
        for text, correct in answers:
            answer_id = self._tables.allocate("answers")
            row = {"id": answer_id, "answer": text, "correct": correct, "question_id": question_id}
            self._tables.answers[answer_id] = row
            rows.append(dict(row))
        return rows

    async def delete_answers_for_question(self, question_id: int) -> int:
        self._check_writable()
        await asyncio.sleep(0)
        doomed = [aid for aid, a in self._tables.answers.items() if a["question_id"] == question_id]
        for answer_id in doomed:
            del self._tables.answers[answer_id]
        return len(doomed)

    async def delete_answers_for_category(self, category_id: int) -> int:
        self._check_writable()
        await asyncio.sleep(0)
        question_ids = {qid for qid, q in self._tables.questions.items() if q["category_id"] == category_id}
        doomed = [aid for aid, a in self._tables.answers.items() if a["question_id"] in question_ids]
        for answer_id in doomed:
            del self._tables.answers[answer_id]
        return len(doomed)


class MemoryStore(EntityStore):
    def __init__(self) -> None:
        self._tables = _Tables()
        self._write_lock = asyncio.Lock()

    @asynccontextmanager
    async def transaction(self, *, readonly: bool = False) -> AsyncIterator[StoreTransaction]:
        if readonly:
            # Committed tables are never mutated in place, so holding a
            # reference is a stable snapshot.
            yield MemoryTransaction(self._tables, readonly=True)
            return

        async with self._write_lock:
            working = copy.deepcopy(self._tables)
            yield MemoryTransaction(working, readonly=False)
            self._tables = working

    def counts(self) -> dict[str, int]:
        """Row counts per table, for diagnostics and tests."""
        return {
            "categories": len(self._tables.categories),
            "questions": len(self._tables.questions),
            "answers": len(self._tables.answers),
        }
