from __future__ import annotations

"""
Integration tests for the CLI application controller.

Runs ``main(argv)`` in-process against a temporary catalog database and
checks exit codes, JSON output and the persisted side effects.
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List

import pytest

from arcade_catalog.core.codec.keyvalues_codec import decode
from arcade_catalog.domain.config import get_default_config
from arcade_catalog.infra.logging import shutdown_logging
from arcade_catalog.infra.store import SQLiteRecordStore
from arcade_catalog.interface.cli.app import main

RecordFactory = Callable[[str, Dict[str, Any]], bytes]


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    yield
    shutdown_logging()


@pytest.fixture
def catalog(db_path: Path, record_factory: RecordFactory) -> Path:
    """Seed a small catalog database and return its path."""
    with SQLiteRecordStore(str(db_path)) as s:
        s.put("items", "1", record_factory("item", {"title": "Asteroids Deluxe", "description": "d" * 40}))
        s.put("items", "2", record_factory("item", {"title": "Tempest"}))
        s.put("instances", "i1", record_factory("instance", {"generation": 1, "mystery": "?"}))
    return db_path


def _run(db: Path, *argv: str) -> int:
    base: List[str] = ["--use-defaults", "--db", str(db)]
    return main(base + list(argv))


def test_types_needs_no_database(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--use-defaults", "--json", "types"]) == 0

    assert "instances" in json.loads(capsys.readouterr().out)


def test_missing_database_is_usage_error(tmp_path: Path) -> None:
    assert _run(tmp_path / "absent.db", "stats") == 2


def test_show_json(catalog: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(catalog, "--json", "show", "items", "2") == 0

    assert json.loads(capsys.readouterr().out) == {"title": "Tempest"}


def test_show_missing_record_fails(catalog: Path) -> None:
    assert _run(catalog, "show", "items", "404") == 1


def test_dump_renders_tree(catalog: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(catalog, "dump", "items", "2") == 0

    out = capsys.readouterr().out
    assert "└── item" in out
    assert 'title = "Tempest"' in out


def test_search(catalog: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(catalog, "--json", "search", "items", "aster") == 0

    assert json.loads(capsys.readouterr().out) == [{"id": "1", "title": "Asteroids Deluxe"}]


def test_anomalies_then_removal(catalog: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(catalog, "--json", "anomalies") == 0
    reports = json.loads(capsys.readouterr().out)
    assert reports[0]["unexpected_keys"] == ["mystery"]
    assert reports[0]["legacy"] == -1

    assert _run(catalog, "remove-anomalies", "i1") == 0
    assert _run(catalog, "remove-anomalies", "ghost") == 1

    with SQLiteRecordStore(str(catalog)) as s:
        section = decode(s.get("instances", "i1")).first_child()
    assert section is not None
    assert section.child_names() == ["generation"]


def test_trim_uses_cli_max_length(catalog: Path) -> None:
    assert _run(catalog, "trim", "items", "1", "--max-length", "5") == 0

    with SQLiteRecordStore(str(catalog)) as s:
        section = decode(s.get("items", "1")).first_child()
    assert section is not None
    assert section.get_string("title") == "Aster"
    assert section.get_string("description") == "ddddd"


def test_merge_from_other_database(
        catalog: Path,
        tmp_path: Path,
        record_factory: RecordFactory,
        capsys: pytest.CaptureFixture[str],
) -> None:
    other = tmp_path / "other.db"
    with SQLiteRecordStore(str(other)) as s:
        s.put("items", "3", record_factory("item", {"title": "Robotron"}))
        s.put("items", "2", record_factory("item", {"title": "Tempest 2000 with a longer title"}))

    assert _run(catalog, "--json", "merge", str(other), "items", "--skip-existing") == 0

    totals = json.loads(capsys.readouterr().out)["totals"]
    assert totals == {"merged": 1, "skipped": 1, "overwritten": 0, "failed": 0}


def test_merge_missing_source_is_usage_error(catalog: Path, tmp_path: Path) -> None:
    assert _run(catalog, "merge", str(tmp_path / "nope.db"), "items") == 2


def test_stats_and_compact(catalog: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(catalog, "--json", "stats") == 0
    stats = json.loads(capsys.readouterr().out)
    assert stats["page_count"] > 0

    assert _run(catalog, "--json", "compact") == 0
    assert json.loads(capsys.readouterr().out)["ok"] is True


def test_trim_rejects_zero_max_length(db_path: Path, record_factory: RecordFactory) -> None:
    long_title = "t" * 600
    with SQLiteRecordStore(str(db_path)) as s:
        s.put("items", "1", record_factory("item", {"title": long_title}))

    with pytest.raises(SystemExit) as exc:
        _run(db_path, "trim", "items", "1", "--max-length", "0")

    assert exc.value.code == 2
    with SQLiteRecordStore(str(db_path)) as s:
        section = decode(s.get("items", "1")).first_child()
    assert section is not None
    assert section.get_string("title") == long_title


def test_log_file_from_config_receives_records(
    catalog: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    log_file = tmp_path / "catalog.log"
    monkeypatch.setattr(
        "arcade_catalog.interface.cli.app.get_default_config",
        lambda: dict(get_default_config(), log_file=str(log_file)),
    )

    assert _run(catalog, "show", "items", "404") == 1
    shutdown_logging()

    assert "Record '404' not found in 'items'." in log_file.read_text(encoding="utf-8")
