"""
Load quiz content from a manifest into the configured store.

    python seed.py [path/to/index.json]

Safe to re-run: categories are upserted by slug and questions already
present in their category (same exact text) are skipped.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from core import factory, settings
from core.memory import MemoryStore
from ingestion import service as ingestion_service

logger = logging.getLogger("quiz_seed")


async def run(manifest_path: Path) -> int:
    store = await factory.open_store()
    if isinstance(store, MemoryStore):
        logger.warning("seed_memory_store data is discarded when the process exits (dry run)")
    try:
        report = await ingestion_service.ingest_manifest(store, manifest_path)
    finally:
        await factory.close_store(store)

    print(report.summary())
    for warning in report.warnings:
        print(f"warning: {warning}")
    return 0 if report.manifest_loaded else 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument(
        "manifest",
        nargs="?",
        default=settings.seed_manifest_path(),
        help="manifest JSON: a list of {title, file, slug?} (default: %(default)s)",
    )
    args = parser.parse_args(argv)

    settings.configure_logging()
    return asyncio.run(run(Path(args.manifest)))


if __name__ == "__main__":
    raise SystemExit(main())
