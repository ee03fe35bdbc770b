"""
Import document parsing.

The manifest is a JSON list of `{title, file, slug?}`. Each `file` is
resolved relative to the manifest and holds
`{questions: [{question, answers: [{answer, correct}]}]}`.

Malformed pieces are dropped with a warning at the smallest granularity
possible: one answer, one question, or one whole category entry.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from categories.service import slugify
from core import errors
from questions.service import AnswerInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuestionRecord:
    question: str
    answers: tuple[AnswerInput, ...]


@dataclass(frozen=True)
class CategoryRecord:
    title: str
    slug: str
    source: str
    questions: tuple[QuestionRecord, ...]


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _warn(warnings: list[str], message: str) -> None:
    logger.warning("ingest_skipped %s", message)
    warnings.append(message)


def read_json(path: Path) -> Any:
    try:
        raw = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise errors.ValidationError(
            f"{path} is not valid UTF-8: {exc.reason} at byte {exc.start}",
            field="file",
        ) from exc
    except OSError as exc:
        raise errors.ValidationError(f"Could not read {path}: {exc.strerror or exc}", field="file") from exc
    except ValueError as exc:
        # e.g. an embedded NUL byte in the file name
        raise errors.ValidationError(f"Could not read {path}: {exc}", field="file") from exc
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise errors.ValidationError(f"Invalid JSON in {path}: {exc.msg} (line {exc.lineno})", field="file") from exc


def read_manifest(path: Path) -> list[Any]:
    data = read_json(path)
    if not isinstance(data, list):
        raise errors.ValidationError(f"Manifest {path} must be a JSON list.", field="manifest")
    return data


def parse_answers(raw: list[Any], *, where: str, warnings: list[str]) -> tuple[AnswerInput, ...]:
    answers: list[AnswerInput] = []
    for i, item in enumerate(raw):
        label = f"{where} answers[{i}]"
        if not isinstance(item, dict) or not _non_empty_str(item.get("answer")):
            _warn(warnings, f"{label}: missing answer text")
            continue
        correct = item.get("correct")
        if not isinstance(correct, bool):
            _warn(warnings, f"{label}: 'correct' must be true or false")
            continue
        answers.append(AnswerInput(answer=item["answer"], correct=correct))
    return tuple(answers)


def parse_questions(raw: list[Any], *, where: str, warnings: list[str]) -> tuple[QuestionRecord, ...]:
    questions: list[QuestionRecord] = []
    for i, item in enumerate(raw):
        label = f"{where} questions[{i}]"
        if not isinstance(item, dict) or not _non_empty_str(item.get("question")):
            _warn(warnings, f"{label}: missing question text")
            continue
        answers = item.get("answers")
        if not isinstance(answers, list):
            _warn(warnings, f"{label}: answers must be a list")
            continue
        questions.append(
            QuestionRecord(
                question=item["question"],
                answers=parse_answers(answers, where=label, warnings=warnings),
            )
        )
    return tuple(questions)


def load_category(entry: Any, *, base_dir: Path, index: int, warnings: list[str]) -> CategoryRecord | None:
    """
    Turn one manifest entry into a record, or None if it must be skipped.
    """
    label = f"manifest[{index}]"
    if not isinstance(entry, dict):
        _warn(warnings, f"{label}: entry must be an object")
        return None
    if not _non_empty_str(entry.get("title")):
        _warn(warnings, f"{label}: missing title")
        return None
    if not _non_empty_str(entry.get("file")):
        _warn(warnings, f"{label}: missing file")
        return None

    title = entry["title"].strip()
    slug = entry.get("slug")
    slug = slug.strip() if _non_empty_str(slug) else slugify(title)

    source = entry["file"].strip()
    try:
        document = read_json(base_dir / source)
    except errors.ValidationError as exc:
        _warn(warnings, f"{label} ({source}): {exc.message}")
        return None

    if not isinstance(document, dict) or not isinstance(document.get("questions"), list):
        _warn(warnings, f"{label} ({source}): document must contain a 'questions' list")
        return None

    return CategoryRecord(
        title=title,
        slug=slug,
        source=source,
        questions=parse_questions(document["questions"], where=source, warnings=warnings),
    )


def iter_category_records(
    entries: list[Any],
    *,
    base_dir: Path,
    warnings: list[str],
) -> Iterator[CategoryRecord]:
    """
    Yield records lazily, in manifest order.
    """
    for index, entry in enumerate(entries):
        try:
            record = load_category(entry, base_dir=base_dir, index=index, warnings=warnings)
        except Exception as exc:
            # One unreadable entry must not end the batch.
            logger.exception("ingest_entry_failed index=%s", index)
            warnings.append(f"manifest[{index}]: could not be loaded ({type(exc).__name__})")
            continue
        if record is not None:
            yield record
