"""
Idempotent bulk ingestion.

Idempotency keys:
- category: slug (upsert; title refreshed when it changed)
- question: (category_id, exact question text); existing matches are skipped

Exact-text matching means whitespace or case variants of a question are
treated as new questions.

Processing is sequential and best-effort per category: a failure while
applying one category is logged and recorded, and the next one still runs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from categories import service as category_service
from core import errors
from core.store import EntityStore
from questions import service as question_service

from . import manifest

logger = logging.getLogger(__name__)


@dataclass
class IngestReport:
    manifest_loaded: bool = True
    categories_created: int = 0
    categories_updated: int = 0
    categories_unchanged: int = 0
    categories_failed: int = 0
    questions_created: int = 0
    questions_skipped: int = 0
    answers_created: int = 0
    warnings: list[str] = field(default_factory=list)

    def summary(self) -> str:
        return (
            f"categories created={self.categories_created} updated={self.categories_updated} "
            f"unchanged={self.categories_unchanged} failed={self.categories_failed}; "
            f"questions created={self.questions_created} skipped={self.questions_skipped}; "
            f"answers created={self.answers_created}; warnings={len(self.warnings)}"
        )


async def ingest_category(
    store: EntityStore,
    record: manifest.CategoryRecord,
    report: IngestReport,
) -> None:
    async with store.transaction() as tx:
        category, outcome = await category_service.upsert_category(tx, slug=record.slug, title=record.title)

    if outcome == "created":
        report.categories_created += 1
    elif outcome == "updated":
        report.categories_updated += 1
    else:
        report.categories_unchanged += 1

    category_id = int(category["id"])
    for item in record.questions:
        # Duplicate check and insert share a transaction.
        async with store.transaction() as tx:
            if await tx.find_question(category_id=category_id, text=item.question) is not None:
                report.questions_skipped += 1
                continue
            row = await question_service.insert_question_tree(
                tx,
                category_id=category_id,
                text=item.question,
                answers=list(item.answers),
            )
        report.questions_created += 1
        report.answers_created += len(row["answers"])

    logger.info(
        "ingest_category slug=%s outcome=%s questions=%s",
        record.slug,
        outcome,
        len(record.questions),
    )


async def apply_records(
    store: EntityStore,
    records: Iterable[manifest.CategoryRecord],
    report: IngestReport | None = None,
) -> IngestReport:
    report = report if report is not None else IngestReport()
    for record in records:
        try:
            await ingest_category(store, record, report)
        except Exception as exc:
            logger.exception("ingest_category_failed slug=%s source=%s", record.slug, record.source)
            report.categories_failed += 1
            reason = "store failure"
            if isinstance(exc, errors.QuizError) and not isinstance(exc, errors.StoreError):
                reason = exc.message
            report.warnings.append(f"{record.source}: category '{record.slug}' failed ({reason})")
    return report


async def ingest_manifest(store: EntityStore, manifest_path: Path) -> IngestReport:
    report = IngestReport()
    try:
        entries = manifest.read_manifest(manifest_path)
    except errors.ValidationError as exc:
        logger.warning("ingest_manifest_unreadable path=%s reason=%s", manifest_path, exc.message)
        report.manifest_loaded = False
        report.warnings.append(exc.message)
        return report

    records = manifest.iter_category_records(
        entries,
        base_dir=manifest_path.parent,
        warnings=report.warnings,
    )
    await apply_records(store, records, report)

    logger.info("ingest_complete path=%s %s", manifest_path, report.summary())
    return report
