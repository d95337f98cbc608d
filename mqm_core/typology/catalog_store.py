from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import text
from sqlalchemy.engine import Connection

from mqm_core.db.schema import initialize_database
from mqm_core.db.session import transaction_scope
from mqm_core.errors import TypologyMismatchError, ValidationError

logger = structlog.get_logger(__name__)


@dataclass(slots=True, frozen=True)
class CatalogIssue:
    issue_id: str
    parent_id: str | None
    name: str
    description: str | None = None


class TypologyNode(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    description: str | None = None
    children: list[TypologyNode] = Field(default_factory=list)


class TypologyDocument(BaseModel):
    model_config = ConfigDict(extra="forbid")

    issues: list[TypologyNode] = Field(default_factory=list)


def _row_to_issue(row: dict[str, object]) -> CatalogIssue:
    parent = row.get("parent_id")
    description = row.get("description")
    return CatalogIssue(
        issue_id=str(row["issue_id"]),
        parent_id=str(parent) if parent is not None else None,
        name=str(row["name"]),
        description=str(description) if description is not None else None,
    )


def get_all_issues(connection: Connection) -> list[CatalogIssue]:
    rows = connection.execute(
        text(
            """
            SELECT issue_id, parent_id, name, description
            FROM issues
            ORDER BY issue_id
            """
        )
    ).mappings().all()
    return [_row_to_issue(dict(row)) for row in rows]


def get_issue_by_id(connection: Connection, issue_id: str) -> CatalogIssue | None:
    row = connection.execute(
        text(
            """
            SELECT issue_id, parent_id, name, description
            FROM issues
            WHERE issue_id = :issue_id
            LIMIT 1
            """
        ),
        {"issue_id": issue_id},
    ).mappings().first()
    if row is None:
        return None
    return _row_to_issue(dict(row))


def is_typology_imported(connection: Connection) -> bool:
    row = connection.execute(text("SELECT 1 FROM issues LIMIT 1")).first()
    return row is not None


def _flatten_nodes(nodes: Sequence[TypologyNode], parent_id: str | None) -> list[CatalogIssue]:
    flattened: list[CatalogIssue] = []
    for node in nodes:
        issue_id = node.id.strip()
        if not issue_id:
            raise ValidationError("Typology entries require a non-empty id.")
        flattened.append(
            CatalogIssue(
                issue_id=issue_id,
                parent_id=parent_id,
                name=node.name,
                description=node.description,
            )
        )
        flattened.extend(_flatten_nodes(node.children, issue_id))
    return flattened


def load_typology_file(path: Path) -> list[CatalogIssue]:
    """Read a nested YAML typology tree into parent-before-child catalog rows."""

    with Path(path).open("r", encoding="utf-8") as handle:
        content = yaml.safe_load(handle) or {}

    try:
        document = TypologyDocument.model_validate(content)
    except ValueError as exc:
        raise ValidationError(f"Invalid typology file {path}: {exc}") from exc

    return _flatten_nodes(document.issues, None)


def import_typology(*, db_path: Path, issues: Sequence[CatalogIssue]) -> int:
    if not issues:
        raise ValidationError("No issues found in typology.")

    seen: set[str] = set()
    for issue in issues:
        if issue.issue_id in seen:
            raise ValidationError(f'Issue type "{issue.issue_id}" appears more than once in the typology')
        seen.add(issue.issue_id)

    engine = initialize_database(Path(db_path))
    try:
        with transaction_scope(engine, operation="import_typology") as connection:
            known = {item.issue_id for item in get_all_issues(connection)} | seen
            for issue in issues:
                if issue.parent_id is not None and issue.parent_id not in known:
                    raise TypologyMismatchError(
                        f'Issue type "{issue.issue_id}" references unknown parent issue type "{issue.parent_id}"',
                        issue_id=issue.issue_id,
                        expected_parent=issue.parent_id,
                    )

            for issue in issues:
                connection.execute(
                    text(
                        """
                        INSERT INTO issues(issue_id, parent_id, name, description)
                        VALUES (:issue_id, :parent_id, :name, :description)
                        ON CONFLICT(issue_id) DO UPDATE SET
                            parent_id = excluded.parent_id,
                            name = excluded.name,
                            description = excluded.description
                        """
                    ),
                    {
                        "issue_id": issue.issue_id,
                        "parent_id": issue.parent_id,
                        "name": issue.name,
                        "description": issue.description,
                    },
                )
    finally:
        engine.dispose()

    logger.info("typology_imported", issue_count=len(issues))
    return len(issues)
