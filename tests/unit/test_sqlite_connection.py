from __future__ import annotations

from pathlib import Path

from pdfvault.infrastructure.db.sqlite import get_connection, initialize_schema


def test_connection_enables_wal_and_busy_timeout(tmp_path: Path) -> None:
    db_path = tmp_path / "pdfvault.db"
    initialize_schema(db_path=db_path)

    with get_connection(db_path) as conn:
        journal_mode = conn.execute("PRAGMA journal_mode;").fetchone()[0]
        busy_timeout = conn.execute("PRAGMA busy_timeout;").fetchone()[0]
        foreign_keys = conn.execute("PRAGMA foreign_keys;").fetchone()[0]

    assert str(journal_mode).lower() == "wal"
    assert int(busy_timeout) >= 30_000
    assert int(foreign_keys) == 1


def test_busy_timeout_is_configurable_from_env(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("PDFVAULT_SQLITE_BUSY_TIMEOUT_MS", "1234")
    db_path = tmp_path / "pdfvault.db"
    initialize_schema(db_path=db_path)

    with get_connection(db_path) as conn:
        assert int(conn.execute("PRAGMA busy_timeout;").fetchone()[0]) == 1234

