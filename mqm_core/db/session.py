from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from mqm_core.db.engine import create_sqlite_engine
from mqm_core.errors import ReviewError, StorageError

logger = structlog.get_logger(__name__)


@contextmanager
def session_for_db(db_path: Path) -> Iterator[Session]:
    """Yield a SQLModel session for the workspace SQLite database."""

    engine = create_sqlite_engine(db_path)
    try:
        with Session(engine) as session:
            yield session
    finally:
        engine.dispose()


@contextmanager
def transaction_scope(engine: Engine, *, operation: str) -> Iterator[Connection]:
    """Yield the single connection of one write transaction.

    The transaction commits when the block exits normally and rolls back on
    any exception. Driver failures (including lock timeouts) surface as
    ``StorageError``; review errors raised inside the block propagate as-is.
    """

    try:
        with engine.begin() as connection:
            yield connection
    except ReviewError as exc:
        logger.warning("transaction_rolled_back", operation=operation, reason=str(exc))
        raise
    except SQLAlchemyError as exc:
        logger.error("transaction_failed", operation=operation, error=str(exc))
        raise StorageError(f"Storage failure during {operation}: {exc}") from exc
