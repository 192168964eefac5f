"""Tests for the expired page sweep script."""

from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
    from ._fakes import HOUR_MS, OutageStore
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401
    from _fakes import HOUR_MS, OutageStore  # type: ignore

from pathlib import Path

import pytest

from app.clients.sqlite_store import SQLiteDocumentStore
from app.services.sweeper import ExpiredPageSweeper
from app.utils.clock import epoch_ms
from scripts import sweep_expired_pages


def _seed(store, page_id: str, expires_at: int) -> None:
    store.insert("birthdayPages", {"uuid": page_id, "expires_at": expires_at}, document_id=page_id)


def test_sweep_deletes_expired_pages_from_configured_store(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    db_path = tmp_path / "pages.db"
    store = SQLiteDocumentStore(str(db_path))
    _seed(store, "old", epoch_ms() - HOUR_MS)
    _seed(store, "fresh", epoch_ms() + HOUR_MS)
    monkeypatch.setenv("STORAGE_BACKEND", "sqlite")
    monkeypatch.setenv("SQLITE_DB_PATH", str(db_path))

    exit_code = sweep_expired_pages.main([])

    assert exit_code == sweep_expired_pages.EXIT_OK
    assert "deleted: 1" in capsys.readouterr().out
    assert store.get("birthdayPages", "old") is None
    assert store.get("birthdayPages", "fresh") is not None


def test_dry_run_counts_without_deleting(capsys: pytest.CaptureFixture[str]) -> None:
    store = OutageStore()
    _seed(store, "old", epoch_ms() - HOUR_MS)

    exit_code = sweep_expired_pages.main(["--dry-run"], sweeper=ExpiredPageSweeper(store))

    assert exit_code == sweep_expired_pages.EXIT_OK
    assert "would delete: 1" in capsys.readouterr().out
    assert store.get("birthdayPages", "old") is not None


def test_storage_outage_has_dedicated_exit_code() -> None:
    store = OutageStore()
    store.down = True

    exit_code = sweep_expired_pages.main([], sweeper=ExpiredPageSweeper(store))

    assert exit_code == sweep_expired_pages.EXIT_STORAGE_UNAVAILABLE


def test_missing_env_file_is_runtime_error(tmp_path: Path) -> None:
    exit_code = sweep_expired_pages.main(["--env-file", str(tmp_path / "missing.env")])

    assert exit_code == sweep_expired_pages.EXIT_RUNTIME_ERROR


def test_invalid_settings_are_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PAGE_LIFETIME_SECONDS", "not-a-number")

    exit_code = sweep_expired_pages.main([])

    assert exit_code == sweep_expired_pages.EXIT_VALIDATION_ERROR
