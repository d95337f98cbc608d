from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

SQLITE_BUSY_TIMEOUT_SECONDS = 15.0

# Applied on every new DBAPI connection; cascades on delete depend on foreign_keys.
SQLITE_PRAGMAS: tuple[tuple[str, str], ...] = (
    ("journal_mode", "WAL"),
    ("foreign_keys", "ON"),
    ("synchronous", "NORMAL"),
)


def sqlite_url(db_path: Path) -> str:
    return f"sqlite+pysqlite:///{Path(db_path).as_posix()}"


def _apply_pragmas(dbapi_connection, _connection_record) -> None:  # type: ignore[no-untyped-def]
    cursor = dbapi_connection.cursor()
    try:
        for name, value in SQLITE_PRAGMAS:
            cursor.execute(f"PRAGMA {name}={value};")
    finally:
        cursor.close()


def create_sqlite_engine(db_path: Path) -> Engine:
    resolved = Path(db_path).expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        sqlite_url(resolved),
        future=True,
        connect_args={"timeout": SQLITE_BUSY_TIMEOUT_SECONDS},
    )
    event.listen(engine, "connect", _apply_pragmas)
    return engine
