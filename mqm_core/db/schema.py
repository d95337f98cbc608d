from __future__ import annotations

from pathlib import Path

import structlog
from sqlalchemy.engine import Engine

from mqm_core.constants import CURRENT_SCHEMA_VERSION
from mqm_core.db.engine import create_sqlite_engine
from mqm_core.db.migrations import migrate_to_latest
from mqm_core.errors import StorageError

logger = structlog.get_logger(__name__)


def initialize_database(db_path: Path) -> Engine:
    """Open the workspace database, applying pending migrations first."""

    engine = create_sqlite_engine(db_path)
    try:
        version = migrate_to_latest(engine)
        if version > CURRENT_SCHEMA_VERSION:
            raise StorageError(
                f"Database schema v{version} is newer than supported v{CURRENT_SCHEMA_VERSION}: {db_path}"
            )
    except Exception:
        engine.dispose()
        raise

    logger.debug("database_ready", db_path=str(db_path), schema_version=version)
    return engine
