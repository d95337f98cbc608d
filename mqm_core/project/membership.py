from __future__ import annotations

from pathlib import Path

import structlog
from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from mqm_core.constants import ROLE_SUPERADMIN
from mqm_core.db.schema import initialize_database
from mqm_core.db.session import transaction_scope
from mqm_core.errors import ConflictError, NotFoundError

logger = structlog.get_logger(__name__)


def map_user_to_project(connection: Connection, *, project_id: str, user_id: str) -> None:
    try:
        connection.execute(
            text(
                """
                INSERT INTO user_projects(user_id, project_id)
                VALUES (:user_id, :project_id)
                """
            ),
            {"user_id": user_id, "project_id": project_id},
        )
    except IntegrityError as exc:
        raise ConflictError(f"{user_id} has already been assigned to this project") from exc


def list_project_users(connection: Connection, project_id: str) -> list[str]:
    rows = connection.execute(
        text(
            """
            SELECT user_id
            FROM user_projects
            WHERE project_id = :project_id
            ORDER BY user_id
            """
        ),
        {"project_id": project_id},
    ).all()
    return [str(row[0]) for row in rows]


def is_user_assigned_to_project(*, db_path: Path, project_id: str, user_id: str, role: str) -> bool:
    if role == ROLE_SUPERADMIN:
        return True

    engine = initialize_database(Path(db_path))
    try:
        with engine.connect() as connection:
            row = connection.execute(
                text(
                    """
                    SELECT 1
                    FROM user_projects
                    WHERE project_id = :project_id AND user_id = :user_id
                    LIMIT 1
                    """
                ),
                {"project_id": project_id, "user_id": user_id},
            ).first()
    finally:
        engine.dispose()

    return row is not None


def add_user_to_project(*, db_path: Path, project_id: str, user_id: str) -> None:
    engine = initialize_database(Path(db_path))
    try:
        with transaction_scope(engine, operation="add_user_to_project") as connection:
            project_row = connection.execute(
                text("SELECT 1 FROM projects WHERE id = :project_id LIMIT 1"),
                {"project_id": project_id},
            ).first()
            if project_row is None:
                raise NotFoundError(f"Project not found: {project_id}")
            map_user_to_project(connection, project_id=project_id, user_id=user_id)
    finally:
        engine.dispose()

    logger.info("user_added_to_project", project_id=project_id, user_id=user_id)


def remove_user_from_project(*, db_path: Path, project_id: str, user_id: str) -> int:
    engine = initialize_database(Path(db_path))
    try:
        with transaction_scope(engine, operation="remove_user_from_project") as connection:
            result = connection.execute(
                text("DELETE FROM user_projects WHERE project_id = :project_id AND user_id = :user_id"),
                {"project_id": project_id, "user_id": user_id},
            )
    finally:
        engine.dispose()
    return int(result.rowcount or 0)


def remove_user_from_all_projects(*, db_path: Path, user_id: str) -> int:
    engine = initialize_database(Path(db_path))
    try:
        with transaction_scope(engine, operation="remove_user_from_all_projects") as connection:
            result = connection.execute(
                text("DELETE FROM user_projects WHERE user_id = :user_id"),
                {"user_id": user_id},
            )
    finally:
        engine.dispose()
    return int(result.rowcount or 0)
