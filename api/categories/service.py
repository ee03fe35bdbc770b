"""
Category write rules.

Every function that takes `store` opens exactly one transaction, so each
operation is all-or-nothing. Functions that take `tx` are building blocks
for callers that already hold a transaction (ingestion).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from core import errors
from core.store import EntityStore, Row, StoreTransaction

logger = logging.getLogger(__name__)

_WHITESPACE_RUN = re.compile(r"\s+")


def slugify(title: str) -> str:
    """
    Derive a slug from a title: lower-case, whitespace runs become "-".
    """
    return _WHITESPACE_RUN.sub("-", (title or "").strip().lower())


def _require_text(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise errors.ValidationError(f"{field} must be a non-empty string.", field=field)
    return value


@dataclass(frozen=True)
class CategoryPatch:
    """
    Partial update for a category. `None` means "not supplied".
    """

    title: str | None = None
    slug: str | None = None
    description: str | None = None

    def fields(self) -> dict[str, Any]:
        values = {"title": self.title, "slug": self.slug, "description": self.description}
        return {name: value for name, value in values.items() if value is not None}


async def insert_category(
    tx: StoreTransaction,
    *,
    slug: str,
    title: str,
    description: str | None = None,
) -> Row:
    if await tx.get_category_by_slug(slug) is not None:
        raise errors.ConflictError(
            f"Category with slug '{slug}' already exists.",
            field="slug",
            constraint="categories_slug_key",
        )
    # The store's unique constraint still guards the race between the
    # check above and this insert.
    return await tx.insert_category(slug=slug, title=title, description=description)


async def upsert_category(tx: StoreTransaction, *, slug: str, title: str) -> tuple[Row, str]:
    """
    Create the category or refresh its title.

    Returns (row, outcome) where outcome is "created", "updated" or
    "unchanged".
    """
    existing = await tx.get_category_by_slug(slug)
    if existing is None:
        row = await tx.insert_category(slug=slug, title=title, description=None)
        return row, "created"
    if existing["title"] == title:
        return existing, "unchanged"
    row = await tx.update_category(int(existing["id"]), {"title": title})
    if row is None:
        raise errors.NotFoundError("Category not found.", field="slug")
    return row, "updated"


async def create_category(
    store: EntityStore,
    *,
    title: str,
    slug: str | None = None,
    description: str | None = None,
) -> Row:
    title = _require_text(title, field="title")
    slug = _require_text(slug, field="slug") if slug is not None else slugify(title)
    if not slug:
        raise errors.ValidationError("slug must be a non-empty string.", field="slug")

    async with store.transaction() as tx:
        row = await insert_category(tx, slug=slug, title=title, description=description)

    logger.info("category_created id=%s slug=%s", row["id"], row["slug"])
    return row


async def _apply_patch(tx: StoreTransaction, row: Row, patch: CategoryPatch) -> Row:
    fields = patch.fields()
    if not fields:
        return row

    for name in ("title", "slug"):
        if name in fields:
            _require_text(fields[name], field=name)

    new_slug = fields.get("slug")
    if new_slug is not None and new_slug != row["slug"]:
        other = await tx.get_category_by_slug(new_slug)
        if other is not None and int(other["id"]) != int(row["id"]):
            raise errors.ConflictError(
                f"Category with slug '{new_slug}' already exists.",
                field="slug",
                constraint="categories_slug_key",
            )

    updated = await tx.update_category(int(row["id"]), fields)
    if updated is None:
        raise errors.NotFoundError("Category not found.")
    return updated


async def update_category(store: EntityStore, category_id: int, patch: CategoryPatch) -> Row:
    async with store.transaction() as tx:
        row = await tx.get_category(category_id)
        if row is None:
            raise errors.NotFoundError("Category not found.", field="id")
        updated = await _apply_patch(tx, row, patch)

    logger.info("category_updated id=%s fields=%s", category_id, sorted(patch.fields()))
    return updated


async def update_category_by_slug(store: EntityStore, slug: str, patch: CategoryPatch) -> Row:
    async with store.transaction() as tx:
        row = await tx.get_category_by_slug(slug)
        if row is None:
            raise errors.NotFoundError("Category not found.", field="slug")
        updated = await _apply_patch(tx, row, patch)

    logger.info("category_updated id=%s fields=%s", updated["id"], sorted(patch.fields()))
    return updated


async def _delete_tree(tx: StoreTransaction, row: Row) -> tuple[int, int]:
    # Children first: answers, then questions, then the category itself.
    category_id = int(row["id"])
    answers = await tx.delete_answers_for_category(category_id)
    questions = await tx.delete_questions_for_category(category_id)
    if not await tx.delete_category(category_id):
        raise errors.NotFoundError("Category not found.")
    return questions, answers


async def delete_category(store: EntityStore, category_id: int) -> None:
    async with store.transaction() as tx:
        row = await tx.get_category(category_id)
        if row is None:
            raise errors.NotFoundError("Category not found.", field="id")
        questions, answers = await _delete_tree(tx, row)

    logger.info(
        "category_deleted id=%s questions=%s answers=%s",
        category_id,
        questions,
        answers,
    )


async def delete_category_by_slug(store: EntityStore, slug: str) -> None:
    async with store.transaction() as tx:
        row = await tx.get_category_by_slug(slug)
        if row is None:
            raise errors.NotFoundError("Category not found.", field="slug")
        questions, answers = await _delete_tree(tx, row)

    logger.info(
        "category_deleted id=%s slug=%s questions=%s answers=%s",
        row["id"],
        slug,
        questions,
        answers,
    )
