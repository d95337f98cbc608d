"""Database helpers for the workspace SQLite file."""

from mqm_core.db.migrations import migrate_to_latest
from mqm_core.db.schema import initialize_database
from mqm_core.db.session import session_for_db, transaction_scope

__all__ = ["initialize_database", "migrate_to_latest", "session_for_db", "transaction_scope"]
