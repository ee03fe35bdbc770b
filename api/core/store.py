"""
Abstract entity store.

The store holds Category, Question and Answer rows as plain dicts
(the same shape asyncpg records turn into). It enforces unique(slug) on
categories and the Question -> Category / Answer -> Question foreign
keys. Cascading deletes are NOT done by the store; the services delete
children explicitly inside one transaction.

Every read or write happens inside `store.transaction()`. A transaction
either commits all of its writes or none of them.

Row shapes:
- category: id, slug, title, description, created_at
- question: id, question, category_id, created_at
- answer:   id, answer, correct, question_id
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Any

from fastapi import Request

Row = dict[str, Any]


class StoreTransaction(ABC):
    """Row-level operations available inside one transaction."""

    # Categories

    @abstractmethod
    async def list_categories(self) -> list[Row]: ...

    @abstractmethod
    async def get_category(self, category_id: int) -> Row | None: ...

    @abstractmethod
    async def get_category_by_slug(self, slug: str) -> Row | None: ...

    @abstractmethod
    async def insert_category(self, *, slug: str, title: str, description: str | None) -> Row: ...

    @abstractmethod
    async def update_category(self, category_id: int, fields: dict[str, Any]) -> Row | None: ...

    @abstractmethod
    async def delete_category(self, category_id: int) -> bool: ...

    # Questions

    @abstractmethod
    async def list_questions(self, *, category_id: int | None = None) -> list[Row]: ...

    @abstractmethod
    async def get_question(self, question_id: int) -> Row | None: ...

    @abstractmethod
    async def find_question(self, *, category_id: int, text: str) -> Row | None: ...

    @abstractmethod
    async def insert_question(self, *, category_id: int, text: str) -> Row: ...

    @abstractmethod
    async def update_question(self, question_id: int, fields: dict[str, Any]) -> Row | None: ...

    @abstractmethod
    async def delete_question(self, question_id: int) -> bool: ...

    @abstractmethod
    async def delete_questions_for_category(self, category_id: int) -> int: ...

    # Answers

    @abstractmethod
    async def list_answers(self, question_ids: list[int]) -> list[Row]: ...

    @abstractmethod
    async def insert_answers(self, question_id: int, answers: list[tuple[str, bool]]) -> list[Row]: ...

    @abstractmethod
    async def delete_answers_for_question(self, question_id: int) -> int: ...

    @abstractmethod
    async def delete_answers_for_category(self, category_id: int) -> int: ...


class EntityStore(ABC):
    @abstractmethod
    def transaction(self, *, readonly: bool = False) -> AbstractAsyncContextManager[StoreTransaction]:
        """
        Open a transaction.

        Read-only transactions see one consistent snapshot of committed
        data. Write transactions are atomic: an exception inside the
        block rolls back every write made in it.
        """

    async def close(self) -> None:
        return None


def get_store(request: Request) -> EntityStore:
    """
    FastAPI dependency: the store built in the app lifespan.
    """
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise RuntimeError("Entity store is not initialized. Did the app lifespan run?")
    return store
