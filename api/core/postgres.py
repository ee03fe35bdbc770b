"""
Postgres-backed entity store (raw SQL via asyncpg).

Each `transaction()` acquires one connection from the process-wide pool,
opens a database transaction on it, and releases the connection when the
block exits. Constraint violations are translated into domain errors;
any other database failure becomes an opaque `StoreError`.

Schema: see `db/migrations/`.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import asyncpg

from . import errors
from .db import record_to_dict
from .store import EntityStore, Row, StoreTransaction

logger = logging.getLogger(__name__)

CATEGORY_COLUMNS = "id, slug, title, description, created_at"
QUESTION_COLUMNS = "id, question, category_id, created_at"
ANSWER_COLUMNS = "id, answer, correct, question_id"

# Column names accepted in partial updates. Keys come from services, but
# they are interpolated into SQL so keep an explicit allowlist.
CATEGORY_UPDATABLE = ("slug", "title", "description")
QUESTION_UPDATABLE = ("question", "category_id")


def _deleted_count(status: str) -> int:
    # asyncpg returns the command tag, e.g. "DELETE 3".
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, IndexError):
        return 0


def _set_clause(fields: dict[str, Any], allowed: tuple[str, ...]) -> tuple[str, list[Any]]:
    columns = [name for name in allowed if name in fields]
    assignments = ", ".join(f"{name} = ${i + 2}" for i, name in enumerate(columns))
    return assignments, [fields[name] for name in columns]


class PostgresTransaction(StoreTransaction):
    def __init__(self, conn: asyncpg.Connection) -> None:
        self._conn = conn

    async def _fetch_one(self, sql: str, *args: Any) -> Row | None:
        row = await self._conn.fetchrow(sql, *args)
        return record_to_dict(row) if row is not None else None

    async def _fetch_all(self, sql: str, *args: Any) -> list[Row]:
        rows = await self._conn.fetch(sql, *args)
        return [record_to_dict(r) for r in rows]

    async def list_categories(self) -> list[Row]:
        return await self._fetch_all(
            f"""
            SELECT {CATEGORY_COLUMNS}
            FROM categories
            ORDER BY id
            """
        )

    async def get_category(self, category_id: int) -> Row | None:
        return await self._fetch_one(
            f"SELECT {CATEGORY_COLUMNS} FROM categories WHERE id = $1",
            category_id,
        )

    async def get_category_by_slug(self, slug: str) -> Row | None:
        return await self._fetch_one(
            f"SELECT {CATEGORY_COLUMNS} FROM categories WHERE slug = $1",
            slug,
        )

    async def insert_category(self, *, slug: str, title: str, description: str | None) -> Row:
        row = await self._fetch_one(
            f"""
            INSERT INTO categories (slug, title, description)
            VALUES ($1, $2, $3)
            RETURNING {CATEGORY_COLUMNS}
            """,
            slug,
            title,
            description,
        )
        if row is None:
            raise errors.StoreError("Failed to insert category.")
        return row

    async def update_category(self, category_id: int, fields: dict[str, Any]) -> Row | None:
        assignments, values = _set_clause(fields, CATEGORY_UPDATABLE)
        if not assignments:
            return await self.get_category(category_id)
        return await self._fetch_one(
            f"""
            UPDATE categories
            SET {assignments}
            WHERE id = $1
            RETURNING {CATEGORY_COLUMNS}
            """,
            category_id,
            *values,
        )

    async def delete_category(self, category_id: int) -> bool:
        row = await self._fetch_one(
            "DELETE FROM categories WHERE id = $1 RETURNING id",
            category_id,
        )
        return row is not None

    async def list_questions(self, *, category_id: int | None = None) -> list[Row]:
        if category_id is None:
            return await self._fetch_all(
                f"SELECT {QUESTION_COLUMNS} FROM questions ORDER BY id"
            )
        return await self._fetch_all(
            f"""
            SELECT {QUESTION_COLUMNS}
            FROM questions
            WHERE category_id = $1
            ORDER BY id
            """,
            category_id,
        )

    async def get_question(self, question_id: int) -> Row | None:
        return await self._fetch_one(
            f"SELECT {QUESTION_COLUMNS} FROM questions WHERE id = $1",
            question_id,
        )

    async def find_question(self, *, category_id: int, text: str) -> Row | None:
        return await self._fetch_one(
            f"""
            SELECT {QUESTION_COLUMNS}
            FROM questions
            WHERE category_id = $1
              AND question = $2
            ORDER BY id
            LIMIT 1
            """,
            category_id,
            text,
        )

    async def insert_question(self, *, category_id: int, text: str) -> Row:
        row = await self._fetch_one(
            f"""
            INSERT INTO questions (question, category_id)
            VALUES ($1, $2)
            RETURNING {QUESTION_COLUMNS}
            """,
            text,
            category_id,
        )
        if row is None:
            raise errors.StoreError("Failed to insert question.")
        return row

    async def update_question(self, question_id: int, fields: dict[str, Any]) -> Row | None:
        assignments, values = _set_clause(fields, QUESTION_UPDATABLE)
        if not assignments:
            return await self.get_question(question_id)
        return await self._fetch_one(
            f"""
            UPDATE questions
            SET {assignments}
            WHERE id = $1
            RETURNING {QUESTION_COLUMNS}
            """,
            question_id,
            *values,
        )

    async def delete_question(self, question_id: int) -> bool:
        row = await self._fetch_one(
            "DELETE FROM questions WHERE id = $1 RETURNING id",
            question_id,
        )
        return row is not None

    async def delete_questions_for_category(self, category_id: int) -> int:
        status = await self._conn.execute(
            "DELETE FROM questions WHERE category_id = $1",
            category_id,
        )
        return _deleted_count(status)

    async def list_answers(self, question_ids: list[int]) -> list[Row]:
        if not question_ids:
            return []
        return await self._fetch_all(
            f"""
            SELECT {ANSWER_COLUMNS}
            FROM answers
            WHERE question_id = ANY($1::bigint[])
            ORDER BY id
            """,
            question_ids,
        )

    async def insert_answers(self, question_id: int, answers: list[tuple[str, bool]]) -> list[Row]:
        rows: list[Row] = []
        for text, correct in answers:
            row = await self._fetch_one(
                f"""
                INSERT INTO answers (answer, correct, question_id)
                VALUES ($1, $2, $3)
                RETURNING {ANSWER_COLUMNS}
                """,
                text,
                correct,
                question_id,
            )
            if row is None:
                raise errors.StoreError("Failed to insert answer.")
            rows.append(row)
        return rows

    async def delete_answers_for_question(self, question_id: int) -> int:
        status = await self._conn.execute(
            "DELETE FROM answers WHERE question_id = $1",
            question_id,
        )
        return _deleted_count(status)

    async def delete_answers_for_category(self, category_id: int) -> int:
        status = await self._conn.execute(
            """
            DELETE FROM answers
            WHERE question_id IN (
              SELECT id FROM questions WHERE category_id = $1
            )
            """,
            category_id,
        )
        return _deleted_count(status)


class PostgresStore(EntityStore):
    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    @asynccontextmanager
    async def transaction(self, *, readonly: bool = False) -> AsyncIterator[StoreTransaction]:
        isolation = "repeatable_read" if readonly else "read_committed"
        try:
            async with self._pool.acquire() as conn:  # type: asyncpg.Connection
                async with conn.transaction(isolation=isolation, readonly=readonly):
                    yield PostgresTransaction(conn)
        except asyncpg.UniqueViolationError as exc:
            raise errors.ConflictError(
                "Category slug already exists.",
                field="slug",
                constraint=exc.constraint_name,
            ) from exc
        except asyncpg.ForeignKeyViolationError as exc:
            raise errors.DependencyError(
                "Referenced entity does not exist.",
                constraint=exc.constraint_name,
            ) from exc
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
            logger.exception("store_failed readonly=%s", readonly)
            raise errors.StoreError(f"Postgres operation failed: {exc}") from exc
