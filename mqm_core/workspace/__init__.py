"""Workspace layout and YAML configuration."""

from mqm_core.workspace.config import WorkspaceConfig, read_config, write_config
from mqm_core.workspace.paths import (
    ensure_workspace_layout,
    resolve_workspace_root,
    workspace_config_path,
    workspace_db_path,
    workspace_exports_path,
)

__all__ = [
    "WorkspaceConfig",
    "ensure_workspace_layout",
    "read_config",
    "resolve_workspace_root",
    "workspace_config_path",
    "workspace_db_path",
    "workspace_exports_path",
    "write_config",
]
