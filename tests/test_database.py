from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from mqm_core.db.schema import initialize_database
from mqm_core.errors import StorageError


def test_initialize_database_creates_schema_and_pragmas(empty_db_path: Path) -> None:
    engine = initialize_database(empty_db_path)
    try:
        with engine.connect() as connection:
            foreign_keys = connection.exec_driver_sql("PRAGMA foreign_keys").scalar_one()
            journal_mode = connection.exec_driver_sql("PRAGMA journal_mode").scalar_one()
    finally:
        engine.dispose()

    assert foreign_keys == 1
    assert str(journal_mode).lower() == "wal"

    conn = sqlite3.connect(empty_db_path)
    try:
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        version = conn.execute("SELECT value FROM schema_meta WHERE key='schema_version'").fetchone()
    finally:
        conn.close()

    assert {"issues", "projects", "user_projects", "project_issues", "segments", "segment_issues"} <= tables
    assert version == ("1",)


def test_initialize_database_is_idempotent(empty_db_path: Path) -> None:
    initialize_database(empty_db_path).dispose()
    initialize_database(empty_db_path).dispose()

    conn = sqlite3.connect(empty_db_path)
    try:
        rows = conn.execute("SELECT value FROM schema_meta").fetchall()
    finally:
        conn.close()
    assert rows == [("1",)]


@pytest.mark.parametrize("recorded", ["99", "not-a-number"])
def test_unsupported_schema_version_is_rejected(empty_db_path: Path, recorded: str) -> None:
    initialize_database(empty_db_path).dispose()

    conn = sqlite3.connect(empty_db_path)
    try:
        conn.execute("UPDATE schema_meta SET value = ? WHERE key = 'schema_version'", (recorded,))
        conn.commit()
    finally:
        conn.close()

    with pytest.raises(StorageError):
        initialize_database(empty_db_path)
