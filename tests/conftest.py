from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from core.memory import MemoryStore


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    monkeypatch.setenv("STORE_BACKEND", "memory")
    import main

    with TestClient(main.app) as test_client:
        yield test_client


@pytest.fixture
def write_json(tmp_path: Path):
    def _write(name: str, data: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def science_document() -> dict:
    return {
        "questions": [
            {
                "question": "2+2?",
                "answers": [
                    {"answer": "4", "correct": True},
                    {"answer": "5", "correct": False},
                ],
            }
        ]
    }
