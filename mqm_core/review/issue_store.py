from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

import structlog
from sqlalchemy import text
from sqlalchemy.engine import Connection

from mqm_core.constants import ISSUE_SIDES, SEVERITY_LEVELS
from mqm_core.db.schema import initialize_database
from mqm_core.db.session import transaction_scope
from mqm_core.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class ProjectIssueRow:
    issue_id: str
    parent_id: str | None
    name: str
    display: bool


@dataclass(slots=True, frozen=True)
class IssueGroup:
    """Reported issues of one catalog type, as parallel level/side sequences.

    A ``None`` pair stands for a project segment with no issue of this type.
    """

    issue_id: str
    levels: tuple[str | None, ...]
    types: tuple[str | None, ...]


@dataclass(slots=True)
class SegmentIssueRow:
    id: str
    segment_id: str
    issue_id: str
    issue_name: str
    type: str
    level: str
    note: str
    highlight_start_index: int | None
    highlight_end_index: int | None
    created_at: str


def _utc_now_iso() -> str:
    return (
        datetime.now(timezone.utc)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z")
    )


def create_project_issue(
    connection: Connection,
    *,
    project_id: str,
    issue_id: str,
    display: bool = True,
) -> str:
    project_issue_id = str(uuid4())
    connection.execute(
        text(
            """
            INSERT INTO project_issues(id, project_id, issue_id, display)
            VALUES (:id, :project_id, :issue_id, :display)
            """
        ),
        {
            "id": project_issue_id,
            "project_id": project_id,
            "issue_id": issue_id,
            "display": 1 if display else 0,
        },
    )
    return project_issue_id


def delete_project_issues(connection: Connection, project_id: str) -> int:
    result = connection.execute(
        text("DELETE FROM project_issues WHERE project_id = :project_id"),
        {"project_id": project_id},
    )
    return int(result.rowcount or 0)


def get_project_issues_by_id(connection: Connection, project_id: str) -> list[ProjectIssueRow]:
    rows = connection.execute(
        text(
            """
            SELECT pi.issue_id, i.parent_id, i.name, pi.display
            FROM project_issues AS pi
            INNER JOIN issues AS i
                ON i.issue_id = pi.issue_id
            WHERE pi.project_id = :project_id
            ORDER BY pi.issue_id
            """
        ),
        {"project_id": project_id},
    ).all()

    return [
        ProjectIssueRow(
            issue_id=str(row[0]),
            parent_id=str(row[1]) if row[1] is not None else None,
            name=str(row[2]),
            display=bool(row[3]),
        )
        for row in rows
    ]


def get_project_report_by_id(connection: Connection, project_id: str) -> list[IssueGroup]:
    rows = connection.execute(
        text(
            """
            SELECT pi.issue_id, si.level, si.type
            FROM project_issues AS pi
            LEFT JOIN segments AS s
                ON s.project_id = pi.project_id
            LEFT JOIN segment_issues AS si
                ON si.segment_id = s.id AND si.issue_id = pi.issue_id
            WHERE pi.project_id = :project_id
            ORDER BY pi.issue_id, s.segment_num, si.created_at, si.id
            """
        ),
        {"project_id": project_id},
    ).all()

    levels_by_issue: dict[str, list[str | None]] = {}
    types_by_issue: dict[str, list[str | None]] = {}
    for issue_id, level, side in rows:
        key = str(issue_id)
        levels_by_issue.setdefault(key, []).append(level)
        types_by_issue.setdefault(key, []).append(side)

    return [
        IssueGroup(
            issue_id=issue_id,
            levels=tuple(levels),
            types=tuple(types_by_issue[issue_id]),
        )
        for issue_id, levels in levels_by_issue.items()
    ]


def _segment_issue_rows(connection: Connection, where_clause: str, params: dict[str, object]) -> list[SegmentIssueRow]:
    rows = connection.execute(
        text(
            f"""
            SELECT
                si.id,
                si.segment_id,
                si.issue_id,
                i.name,
                si.type,
                si.level,
                si.note,
                si.highlight_start_index,
                si.highlight_end_index,
                si.created_at
            FROM segment_issues AS si
            INNER JOIN segments AS s
                ON s.id = si.segment_id
            INNER JOIN issues AS i
                ON i.issue_id = si.issue_id
            WHERE {where_clause}
            ORDER BY s.segment_num, si.created_at, si.id
            """
        ),
        params,
    ).all()

    return [
        SegmentIssueRow(
            id=str(row[0]),
            segment_id=str(row[1]),
            issue_id=str(row[2]),
            issue_name=str(row[3]),
            type=str(row[4]),
            level=str(row[5]),
            note=str(row[6] or ""),
            highlight_start_index=int(row[7]) if row[7] is not None else None,
            highlight_end_index=int(row[8]) if row[8] is not None else None,
            created_at=str(row[9]),
        )
        for row in rows
    ]


def get_segment_issues_by_segment_id(connection: Connection, segment_id: str) -> list[SegmentIssueRow]:
    return _segment_issue_rows(connection, "si.segment_id = :segment_id", {"segment_id": segment_id})


def get_segment_issues_by_project_id(connection: Connection, project_id: str) -> list[SegmentIssueRow]:
    return _segment_issue_rows(connection, "s.project_id = :project_id", {"project_id": project_id})


def _create_segment_issue_on_connection(
    connection: Connection,
    *,
    segment_id: str,
    issue_id: str,
    side: str,
    level: str,
    note: str,
    highlight_start_index: int | None,
    highlight_end_index: int | None,
) -> str:
    segment_row = connection.execute(
        text("SELECT project_id FROM segments WHERE id = :segment_id LIMIT 1"),
        {"segment_id": segment_id},
    ).first()
    if segment_row is None:
        raise NotFoundError(f"Segment not found: {segment_id}")

    # Only issue types enabled by the project's metric count towards its report and score.
    enabled = connection.execute(
        text(
            """
            SELECT 1
            FROM project_issues
            WHERE project_id = :project_id AND issue_id = :issue_id
            LIMIT 1
            """
        ),
        {"project_id": segment_row[0], "issue_id": issue_id},
    ).first()
    if enabled is None:
        raise ValidationError(f'Issue type "{issue_id}" is not part of this project\'s metric')

    report_id = str(uuid4())
    connection.execute(
        text(
            """
            INSERT INTO segment_issues(
                id, segment_id, issue_id, type, level, note,
                highlight_start_index, highlight_end_index, created_at
            ) VALUES (
                :id, :segment_id, :issue_id, :type, :level, :note,
                :highlight_start_index, :highlight_end_index, :created_at
            )
            """
        ),
        {
            "id": report_id,
            "segment_id": segment_id,
            "issue_id": issue_id,
            "type": side,
            "level": level,
            "note": note,
            "highlight_start_index": highlight_start_index,
            "highlight_end_index": highlight_end_index,
            "created_at": _utc_now_iso(),
        },
    )
    return report_id


def create_segment_issue(
    *,
    db_path: Path | None = None,
    connection: Connection | None = None,
    segment_id: str,
    issue_id: str,
    side: str,
    level: str,
    note: str = "",
    highlight_start_index: int | None = None,
    highlight_end_index: int | None = None,
) -> str:
    if side not in ISSUE_SIDES:
        raise ValidationError(f"Issue side must be one of {', '.join(ISSUE_SIDES)}: {side}")
    if level not in SEVERITY_LEVELS:
        raise ValidationError(f"Severity level must be one of {', '.join(SEVERITY_LEVELS)}: {level}")

    payload = {
        "segment_id": segment_id,
        "issue_id": issue_id,
        "side": side,
        "level": level,
        "note": note,
        "highlight_start_index": highlight_start_index,
        "highlight_end_index": highlight_end_index,
    }

    if connection is not None:
        return _create_segment_issue_on_connection(connection, **payload)

    if db_path is None:
        raise ValueError("db_path is required when connection is not provided")

    engine = initialize_database(Path(db_path))
    try:
        with transaction_scope(engine, operation="create_segment_issue") as local_connection:
            return _create_segment_issue_on_connection(local_connection, **payload)
    finally:
        engine.dispose()


def delete_segment_issue_by_id(*, db_path: Path, issue_report_id: str) -> bool:
    engine = initialize_database(Path(db_path))
    try:
        with transaction_scope(engine, operation="delete_segment_issue") as connection:
            result = connection.execute(
                text("DELETE FROM segment_issues WHERE id = :id"),
                {"id": issue_report_id},
            )
    finally:
        engine.dispose()

    deleted = bool(result.rowcount)
    logger.info("segment_issue_deleted", issue_report_id=issue_report_id, deleted=deleted)
    return deleted
