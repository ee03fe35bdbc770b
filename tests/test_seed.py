import pytest

import seed


@pytest.fixture(autouse=True)
def memory_backend(monkeypatch):
    monkeypatch.setenv("STORE_BACKEND", "memory")


def test_completed_run_prints_summary_and_exits_zero(write_json, science_document, capsys):
    write_json("science.json", science_document)
    index = write_json(
        "index.json",
        [
            {"title": "Science", "file": "science.json"},
            {"title": "No File"},
        ],
    )

    code = seed.main([str(index)])

    out = capsys.readouterr().out.splitlines()
    assert code == 0
    assert out[0].startswith("categories created=1 ")
    assert "questions created=1 skipped=0" in out[0]
    assert out[1:] == ["warning: manifest[1]: missing file"]


def test_unreadable_manifest_exits_one(tmp_path, capsys):
    code = seed.main([str(tmp_path / "absent.json")])

    out = capsys.readouterr().out.splitlines()
    assert code == 1
    assert out[0].startswith("categories created=0 ")
    assert out[1].startswith("warning: Could not read ")


def test_non_utf8_manifest_exits_one(tmp_path, capsys):
    index = tmp_path / "index.json"
    index.write_bytes(b"[\xff]")

    code = seed.main([str(index)])

    out = capsys.readouterr().out
    assert code == 1
    assert "warning:" in out
    assert "not valid UTF-8" in out
