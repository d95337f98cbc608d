from __future__ import annotations

from collections.abc import Callable

import structlog
from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

from mqm_core.errors import StorageError

logger = structlog.get_logger(__name__)

Migration = Callable[[Connection], None]

SCHEMA_VERSION_KEY = "schema_version"


def get_schema_version(connection: Connection) -> int:
    """Return the recorded schema version, 0 for a fresh database."""

    has_meta = connection.execute(
        text("SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'schema_meta'")
    ).first()
    if has_meta is None:
        return 0

    value = connection.execute(
        text("SELECT value FROM schema_meta WHERE key = :key"),
        {"key": SCHEMA_VERSION_KEY},
    ).scalar_one_or_none()
    if value is None:
        return 0
    if not str(value).isdigit():
        raise StorageError(f"Unreadable schema version in schema_meta: {value!r}")
    return int(value)


def _record_schema_version(connection: Connection, version: int) -> None:
    connection.execute(
        text(
            """
            INSERT INTO schema_meta(key, value) VALUES (:key, :version)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
            """
        ),
        {"key": SCHEMA_VERSION_KEY, "version": str(version)},
    )


def _migration_v1(connection: Connection) -> None:
    statements = (
        """
        CREATE TABLE IF NOT EXISTS schema_meta (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS issues (
            issue_id TEXT PRIMARY KEY,
            parent_id TEXT,
            name TEXT NOT NULL,
            description TEXT
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS projects (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            finished INTEGER NOT NULL DEFAULT 0,
            last_segment INTEGER NOT NULL DEFAULT 1,
            bitext_file TEXT NOT NULL DEFAULT '',
            metric_file TEXT NOT NULL DEFAULT '',
            specifications_file TEXT NOT NULL DEFAULT '',
            specifications TEXT NOT NULL DEFAULT '',
            source_word_count INTEGER NOT NULL DEFAULT 0,
            target_word_count INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS user_projects (
            user_id TEXT NOT NULL,
            project_id TEXT NOT NULL,
            FOREIGN KEY(project_id) REFERENCES projects(id) ON DELETE CASCADE
        )
        """,
        """
        CREATE UNIQUE INDEX IF NOT EXISTS idx_user_projects_user_project
        ON user_projects(user_id, project_id)
        """,
        """
        CREATE TABLE IF NOT EXISTS project_issues (
            id TEXT PRIMARY KEY,
            project_id TEXT NOT NULL,
            issue_id TEXT NOT NULL,
            display INTEGER NOT NULL DEFAULT 1,
            FOREIGN KEY(project_id) REFERENCES projects(id) ON DELETE CASCADE,
            FOREIGN KEY(issue_id) REFERENCES issues(issue_id)
        )
        """,
        """
        CREATE UNIQUE INDEX IF NOT EXISTS idx_project_issues_project_issue
        ON project_issues(project_id, issue_id)
        """,
        """
        CREATE TABLE IF NOT EXISTS segments (
            id TEXT PRIMARY KEY,
            project_id TEXT NOT NULL,
            segment_num INTEGER NOT NULL,
            source_text TEXT NOT NULL,
            target_text TEXT NOT NULL,
            FOREIGN KEY(project_id) REFERENCES projects(id) ON DELETE CASCADE
        )
        """,
        """
        CREATE INDEX IF NOT EXISTS idx_segments_project_segment_num
        ON segments(project_id, segment_num)
        """,
        """
        CREATE TABLE IF NOT EXISTS segment_issues (
            id TEXT PRIMARY KEY,
            segment_id TEXT NOT NULL,
            issue_id TEXT NOT NULL,
            type TEXT NOT NULL CHECK (type IN ('source', 'target')),
            level TEXT NOT NULL CHECK (level IN ('neutral', 'minor', 'major', 'critical')),
            note TEXT NOT NULL DEFAULT '',
            highlight_start_index INTEGER,
            highlight_end_index INTEGER,
            created_at TEXT NOT NULL,
            FOREIGN KEY(segment_id) REFERENCES segments(id) ON DELETE CASCADE,
            FOREIGN KEY(issue_id) REFERENCES issues(issue_id)
        )
        """,
        """
        CREATE INDEX IF NOT EXISTS idx_segment_issues_segment
        ON segment_issues(segment_id)
        """,
    )

    for statement in statements:
        connection.exec_driver_sql(statement)


MIGRATIONS: dict[int, Migration] = {
    1: _migration_v1,
}


def migrate_to_latest(engine: Engine) -> int:
    """Apply every pending migration in one transaction; return the resulting version."""

    with engine.begin() as connection:
        version = get_schema_version(connection)
        for target_version in sorted(MIGRATIONS):
            if target_version <= version:
                continue
            MIGRATIONS[target_version](connection)
            _record_schema_version(connection, target_version)
            logger.info("schema_migrated", from_version=version, to_version=target_version)
            version = target_version

    return version
