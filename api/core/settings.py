"""
Environment-driven settings and logging setup.
"""

from __future__ import annotations

import logging
import os

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

DEFAULT_SEED_MANIFEST = "data/index.json"


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def database_url_configured() -> bool:
    return bool(os.environ.get("DATABASE_URL", "").strip())


def store_backend() -> str:
    """
    Which EntityStore implementation to build: "postgres" or "memory".

    Without an explicit STORE_BACKEND we use Postgres only when a
    DATABASE_URL is present.
    """
    raw = os.environ.get("STORE_BACKEND", "").strip().lower()
    if raw in {"postgres", "memory"}:
        return raw
    return "postgres" if database_url_configured() else "memory"


def allowed_origins() -> list[str]:
    raw = os.environ.get("ALLOWED_ORIGINS", "").strip()
    if not raw:
        return list(DEFAULT_ALLOWED_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def seed_manifest_path() -> str:
    return os.environ.get("SEED_MANIFEST", DEFAULT_SEED_MANIFEST).strip() or DEFAULT_SEED_MANIFEST


def log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"


def configure_logging() -> None:
    logging.basicConfig(
        level=log_level(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
