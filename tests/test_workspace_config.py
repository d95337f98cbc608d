from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from mqm_core.workspace.config import WorkspaceConfig, read_config, write_config
from mqm_core.workspace.paths import ensure_workspace_layout, resolve_workspace_root, workspace_db_path


def test_config_round_trips_through_yaml(tmp_path: Path) -> None:
    config_path = tmp_path / "nested" / "config.yml"
    config = WorkspaceConfig(database_filename="other.db", log_level="debug", json_logs=True)

    write_config(config_path, config)

    loaded = read_config(config_path)
    assert loaded.database_filename == "other.db"
    assert loaded.log_level == "DEBUG"
    assert loaded.json_logs is True


def test_config_rejects_unknown_keys_and_levels(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yml"
    config_path.write_text("database_filename: review.db\napi_key: secret\n", encoding="utf-8")

    with pytest.raises(ValidationError):
        read_config(config_path)

    with pytest.raises(ValidationError):
        WorkspaceConfig(log_level="chatty")


def test_workspace_paths(tmp_path: Path) -> None:
    root = resolve_workspace_root(tmp_path / "ws")
    ensure_workspace_layout(root)

    assert (root / "exports").is_dir()
    assert workspace_db_path(root) == root / "review.db"
    assert workspace_db_path(root, "other.db") == root / "other.db"
