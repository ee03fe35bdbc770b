"""
Domain error taxonomy.

Services raise these instead of `HTTPException` so they stay usable from
the seeding script and from tests. `main.py` maps them to HTTP responses.
"""

from __future__ import annotations

from typing import Any


class QuizError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        constraint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.constraint = constraint

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"detail": self.message, "error": self.code}
        if self.field is not None:
            body["field"] = self.field
        if self.constraint is not None:
            body["constraint"] = self.constraint
        return body


class ValidationError(QuizError):
    """Malformed or missing input supplied by the caller."""

    status_code = 400
    code = "validation_error"


class NotFoundError(QuizError):
    status_code = 404
    code = "not_found"


class ConflictError(QuizError):
    """A unique constraint would be violated (e.g. duplicate slug)."""

    status_code = 409
    code = "conflict"


class DependencyError(QuizError):
    """A referenced parent entity does not exist."""

    status_code = 400
    code = "dependency_missing"


class StoreError(QuizError):
    """
    Infrastructure failure in the underlying store.

    The message is logged, never returned to clients.
    """

    status_code = 500
    code = "internal_error"

    def to_dict(self) -> dict[str, Any]:
        return {"detail": "Internal Server Error", "error": self.code}


def parse_id(raw: Any, *, field: str = "id") -> int:
    """
    Convert a caller-supplied identifier to an int.

    Non-numeric values are a validation failure, not a lookup miss.
    """
    if isinstance(raw, bool):
        raise ValidationError(f"Invalid {field}.", field=field)
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw or "").strip()
        if not text.isdigit():
            raise ValidationError(f"Invalid {field}.", field=field)
        value = int(text)
    if value <= 0:
        raise ValidationError(f"Invalid {field}.", field=field)
    return value
