from __future__ import annotations

CURRENT_SCHEMA_VERSION = 1
DEFAULT_WORKSPACE_DIRNAME = "workspace"
WORKSPACE_DB_FILENAME = "review.db"
WORKSPACE_CONFIG_FILENAME = "config.yml"
WORKSPACE_SUBDIRS = ("exports",)

ROLE_SUPERADMIN = "superadmin"
ROLE_ADMIN = "admin"
ROLE_USER = "user"
ELEVATED_ROLES = (ROLE_SUPERADMIN, ROLE_ADMIN)

SIDE_SOURCE = "source"
SIDE_TARGET = "target"
ISSUE_SIDES = (SIDE_SOURCE, SIDE_TARGET)

SEVERITY_LEVELS = ("neutral", "minor", "major", "critical")
