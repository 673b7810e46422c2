"""Tests for the expired-token sweep script."""

from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from rememberme.clients import SQLiteTripletStore
from scripts import sweep_tokens


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


@pytest.fixture()
def sqlite_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    db_path = tmp_path / "triplets.sqlite3"
    monkeypatch.setenv("STORAGE_BACKEND", "sqlite")
    monkeypatch.setenv("STORAGE_SQLITE_PATH", str(db_path))
    monkeypatch.delenv("SECURITY_TOKEN_DIGEST_SECRET", raising=False)
    return db_path


def test_sweep_removes_expired_triplets(sqlite_env: Path, capsys) -> None:
    now = datetime.now(timezone.utc)
    store = SQLiteTripletStore(str(sqlite_env))
    store.store_triplet("u1", "tA", "pA", now - timedelta(days=1))
    store.store_triplet("u2", "tB", "pB", now + timedelta(days=1))

    exit_code = sweep_tokens.main(["--env-file", str(sqlite_env.parent / "missing.env")])

    assert exit_code == sweep_tokens.EXIT_OK
    assert "Removed 1 expired triplets" in capsys.readouterr().out
    assert [triplet.identity for triplet in store.list_triplets()] == ["u2"]


def test_sweep_honours_explicit_cutoff(sqlite_env: Path) -> None:
    now = datetime.now(timezone.utc)
    store = SQLiteTripletStore(str(sqlite_env))
    store.store_triplet("u1", "tA", "pA", now + timedelta(days=1))

    cutoff = (now + timedelta(days=2)).isoformat()
    exit_code = sweep_tokens.main(["--cutoff", cutoff])

    assert exit_code == sweep_tokens.EXIT_OK
    assert store.list_triplets() == []


def test_sweep_reports_invalid_settings(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys
) -> None:
    monkeypatch.delenv("STORAGE_BACKEND", raising=False)
    env_file = tmp_path / ".env"
    _write_env(env_file, STORAGE_BACKEND="cassandra")

    exit_code = sweep_tokens.main(["--env-file", str(env_file)])

    assert exit_code == sweep_tokens.EXIT_VALIDATION_ERROR
    assert "Settings validation failed" in capsys.readouterr().err


def test_sweep_reports_backend_failures(
    monkeypatch: pytest.MonkeyPatch, capsys
) -> None:
    monkeypatch.setenv("STORAGE_BACKEND", "dynamodb")
    monkeypatch.delenv("STORAGE_DYNAMODB_TABLE_NAME", raising=False)

    exit_code = sweep_tokens.main([])

    assert exit_code == sweep_tokens.EXIT_RUNTIME_ERROR
    assert "Unexpected error during sweep" in capsys.readouterr().err


def test_sweep_rejects_malformed_cutoff(sqlite_env: Path) -> None:
    with pytest.raises(SystemExit):
        sweep_tokens.main(["--cutoff", "yesterday"])
