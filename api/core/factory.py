"""
Build the configured EntityStore (see `core.settings.store_backend`).
"""

from __future__ import annotations

import logging

from . import db, settings
from .memory import MemoryStore
from .postgres import PostgresStore
from .store import EntityStore

logger = logging.getLogger(__name__)


async def open_store() -> EntityStore:
    backend = settings.store_backend()
    if backend == "postgres":
        pool = await db.init_pool()
        logger.info("store_opened backend=postgres")
        return PostgresStore(pool)

    logger.info("store_opened backend=memory")
    return MemoryStore()


async def close_store(store: EntityStore) -> None:
    await store.close()
    await db.close_pool()
