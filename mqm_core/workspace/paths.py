from __future__ import annotations

from pathlib import Path

from mqm_core.constants import (
    DEFAULT_WORKSPACE_DIRNAME,
    WORKSPACE_CONFIG_FILENAME,
    WORKSPACE_DB_FILENAME,
    WORKSPACE_SUBDIRS,
)


def resolve_workspace_root(root: Path | None = None) -> Path:
    if root is None:
        return Path.cwd() / DEFAULT_WORKSPACE_DIRNAME
    return Path(root).expanduser()


def workspace_config_path(root: Path) -> Path:
    return root / WORKSPACE_CONFIG_FILENAME


def workspace_db_path(root: Path, db_filename: str = WORKSPACE_DB_FILENAME) -> Path:
    return root / db_filename


def workspace_exports_path(root: Path) -> Path:
    return root / "exports"


def ensure_workspace_layout(root: Path) -> None:
    for dirname in WORKSPACE_SUBDIRS:
        (root / dirname).mkdir(parents=True, exist_ok=True)
