from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

import structlog
from sqlalchemy import text
from sqlalchemy.engine import Connection

from mqm_core.constants import ROLE_SUPERADMIN
from mqm_core.db.schema import initialize_database
from mqm_core.db.session import transaction_scope

logger = structlog.get_logger(__name__)

PROJECT_MUTABLE_FIELDS = (
    "name",
    "finished",
    "last_segment",
    "bitext_file",
    "metric_file",
    "specifications_file",
    "specifications",
    "source_word_count",
    "target_word_count",
)

_PROJECT_COLUMNS = """
    id, name, finished, last_segment, bitext_file, metric_file,
    specifications_file, specifications, source_word_count, target_word_count,
    created_at, updated_at
"""


@dataclass(slots=True)
class ProjectRecord:
    id: str
    name: str
    finished: bool
    last_segment: int
    bitext_file: str
    metric_file: str
    specifications_file: str
    specifications: str
    source_word_count: int
    target_word_count: int
    created_at: str
    updated_at: str


def _utc_now_iso() -> str:
    return (
        datetime.now(timezone.utc)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z")
    )


def _row_to_project(row: dict[str, object]) -> ProjectRecord:
    return ProjectRecord(
        id=str(row["id"]),
        name=str(row["name"]),
        finished=bool(row["finished"]),
        last_segment=int(row["last_segment"]),
        bitext_file=str(row["bitext_file"] or ""),
        metric_file=str(row["metric_file"] or ""),
        specifications_file=str(row["specifications_file"] or ""),
        specifications=str(row["specifications"] or ""),
        source_word_count=int(row["source_word_count"] or 0),
        target_word_count=int(row["target_word_count"] or 0),
        created_at=str(row["created_at"]),
        updated_at=str(row["updated_at"]),
    )


def create_project_row(
    connection: Connection,
    *,
    name: str,
    specifications_file: str,
    specifications: str,
    metric_file: str,
    bitext_file: str,
    source_word_count: int,
    target_word_count: int,
) -> str:
    now = _utc_now_iso()
    project_id = str(uuid4())
    connection.execute(
        text(
            """
            INSERT INTO projects(
                id, name, finished, last_segment, bitext_file, metric_file,
                specifications_file, specifications, source_word_count, target_word_count,
                created_at, updated_at
            ) VALUES (
                :id, :name, 0, 1, :bitext_file, :metric_file,
                :specifications_file, :specifications, :source_word_count, :target_word_count,
                :created_at, :updated_at
            )
            """
        ),
        {
            "id": project_id,
            "name": name,
            "bitext_file": bitext_file,
            "metric_file": metric_file,
            "specifications_file": specifications_file,
            "specifications": specifications,
            "source_word_count": source_word_count,
            "target_word_count": target_word_count,
            "created_at": now,
            "updated_at": now,
        },
    )
    return project_id


def get_project_by_id(connection: Connection, project_id: str) -> ProjectRecord | None:
    row = connection.execute(
        text(f"SELECT {_PROJECT_COLUMNS} FROM projects WHERE id = :project_id LIMIT 1"),
        {"project_id": project_id},
    ).mappings().first()
    if row is None:
        return None
    return _row_to_project(dict(row))


def set_project_attributes(
    connection: Connection,
    attributes: Sequence[tuple[str, object]],
    project_id: str,
) -> int:
    """Apply ``(field, value)`` pairs to one project as a single UPDATE."""

    if not attributes:
        return 0

    assignments: list[str] = []
    params: dict[str, object] = {"project_id": project_id, "updated_at": _utc_now_iso()}
    for field_name, value in attributes:
        if field_name not in PROJECT_MUTABLE_FIELDS:
            raise ValueError(f"Unsupported project attribute: {field_name}")
        assignments.append(f"{field_name} = :{field_name}")
        params[field_name] = int(value) if isinstance(value, bool) else value
    assignments.append("updated_at = :updated_at")

    result = connection.execute(
        text(f"UPDATE projects SET {', '.join(assignments)} WHERE id = :project_id"),
        params,
    )
    return int(result.rowcount or 0)


def list_projects(*, db_path: Path, user_id: str, role: str) -> list[ProjectRecord]:
    engine = initialize_database(Path(db_path))
    try:
        with engine.connect() as connection:
            if role == ROLE_SUPERADMIN:
                rows = connection.execute(
                    text(f"SELECT {_PROJECT_COLUMNS} FROM projects ORDER BY created_at, id")
                ).mappings().all()
            else:
                rows = connection.execute(
                    text(
                        f"""
                        SELECT {_PROJECT_COLUMNS}
                        FROM projects
                        WHERE id IN (
                            SELECT project_id FROM user_projects WHERE user_id = :user_id
                        )
                        ORDER BY created_at, id
                        """
                    ),
                    {"user_id": user_id},
                ).mappings().all()
    finally:
        engine.dispose()

    return [_row_to_project(dict(row)) for row in rows]


def delete_project(*, db_path: Path, project_id: str) -> bool:
    engine = initialize_database(Path(db_path))
    try:
        with transaction_scope(engine, operation="delete_project") as connection:
            result = connection.execute(
                text("DELETE FROM projects WHERE id = :project_id"),
                {"project_id": project_id},
            )
    finally:
        engine.dispose()

    deleted = bool(result.rowcount)
    logger.info("project_deleted", project_id=project_id, deleted=deleted)
    return deleted
