from __future__ import annotations

from pathlib import Path

import typer

from mqm_core.constants import ROLE_USER
from mqm_core.db.schema import initialize_database
from mqm_core.errors import ReviewError
from mqm_core.export.export_report import export_report_file
from mqm_core.logging_config import configure_logging
from mqm_core.project.membership import add_user_to_project
from mqm_core.project.project_store import delete_project, list_projects
from mqm_core.project.project_view import get_project_overview
from mqm_core.scoring.report import REPORT_COLUMNS
from mqm_core.scoring.score import generate_project_score
from mqm_core.typology.catalog_store import import_typology, load_typology_file
from mqm_core.workspace.config import WorkspaceConfig, read_config, write_config
from mqm_core.workspace.paths import (
    ensure_workspace_layout,
    resolve_workspace_root,
    workspace_config_path,
    workspace_db_path,
    workspace_exports_path,
)

app = typer.Typer(help="Translation quality review CLI")

RootOption = typer.Option(
    None,
    "--root",
    help="Workspace root path. Defaults to ./workspace.",
    file_okay=False,
    resolve_path=False,
)


def _fail(exc: Exception) -> typer.Exit:
    typer.secho(str(exc), fg=typer.colors.RED, err=True)
    return typer.Exit(code=1)


def _open_workspace(root: Path | None) -> tuple[Path, WorkspaceConfig]:
    workspace_root = resolve_workspace_root(root)
    config_path = workspace_config_path(workspace_root)
    if not config_path.exists():
        raise FileNotFoundError(f"Workspace is not initialized: {workspace_root}")

    config = read_config(config_path)
    configure_logging(config.log_level, json_logs=config.json_logs)
    return workspace_root, config


def _db_path(root: Path | None) -> tuple[Path, Path]:
    workspace_root, config = _open_workspace(root)
    return workspace_root, workspace_db_path(workspace_root, config.database_filename)


@app.command("init-workspace")
def init_workspace_command(root: Path | None = RootOption) -> None:
    """Create a workspace folder with its config and SQLite database."""

    workspace_root = resolve_workspace_root(root)
    config_path = workspace_config_path(workspace_root)
    if config_path.exists():
        raise _fail(FileExistsError(f"Workspace already exists: {workspace_root}"))

    workspace_root.mkdir(parents=True, exist_ok=True)
    ensure_workspace_layout(workspace_root)
    config = WorkspaceConfig()
    write_config(config_path, config)

    db_path = workspace_db_path(workspace_root, config.database_filename)
    initialize_database(db_path).dispose()

    typer.echo(f"Workspace created: {workspace_root}")
    typer.echo(f"Database: {db_path}")
    typer.echo("Next steps:")
    typer.echo(f"  mqm import-typology <typology.yml> --root {workspace_root}")


@app.command("import-typology")
def import_typology_command(
    typology_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML typology tree."),
    root: Path | None = RootOption,
) -> None:
    """Load the global issue-type catalog from a YAML tree."""

    try:
        _, db_path = _db_path(root)
        imported = import_typology(db_path=db_path, issues=load_typology_file(typology_path))
    except (FileNotFoundError, ReviewError) as exc:
        raise _fail(exc) from exc

    typer.echo(f"Imported {imported} issue types.")


@app.command("list-projects")
def list_projects_command(
    user: str = typer.Option(..., "--user", help="Caller user id."),
    role: str = typer.Option(ROLE_USER, "--role", help="Caller role."),
    root: Path | None = RootOption,
) -> None:
    """List the projects visible to a user."""

    try:
        _, db_path = _db_path(root)
        projects = list_projects(db_path=db_path, user_id=user, role=role)
    except (FileNotFoundError, ReviewError) as exc:
        raise _fail(exc) from exc

    if not projects:
        typer.echo("No projects.")
        return

    for project in projects:
        status = "finished" if project.finished else f"segment {project.last_segment}"
        typer.echo(f"{project.id}  {project.name}  ({status})")


@app.command("show-project")
def show_project_command(
    project_id: str = typer.Argument(..., help="Project id."),
    root: Path | None = RootOption,
) -> None:
    """Show a project with its per-issue report and quality score."""

    try:
        _, db_path = _db_path(root)
        overview = get_project_overview(db_path=db_path, project_id=project_id)
    except (FileNotFoundError, ReviewError) as exc:
        raise _fail(exc) from exc

    project = overview.project
    typer.echo(f"Project: {project.name} ({project.id})")
    typer.echo(f"Bi-text: {project.bitext_file}  Metric: {project.metric_file}")
    typer.echo(f"Words: source={project.source_word_count} target={project.target_word_count}")
    typer.echo(f"Segments: {len(overview.segments)}  Users: {', '.join(overview.users) or '-'}")
    typer.echo(f"Score: {'n/a' if overview.score is None else f'{overview.score:.2f}'}")
    typer.echo("Report: " + " ".join(REPORT_COLUMNS))
    for issue_id, counts in overview.report.items():
        typer.echo(f"  {issue_id}: {' '.join(str(count) for count in counts)}")


@app.command("score")
def score_command(
    project_id: str = typer.Argument(..., help="Project id."),
    root: Path | None = RootOption,
) -> None:
    """Print the composite quality score of a project."""

    try:
        _, db_path = _db_path(root)
        score = generate_project_score(db_path=db_path, project_id=project_id)
    except (FileNotFoundError, ReviewError) as exc:
        raise _fail(exc) from exc

    typer.echo(f"{score:.2f}")


@app.command("export-report")
def export_report_command(
    project_id: str = typer.Argument(..., help="Project id."),
    file_format: str = typer.Option("csv", "--format", help="csv, xlsx or json."),
    root: Path | None = RootOption,
) -> None:
    """Write the project report into the workspace exports folder."""

    try:
        workspace_root, db_path = _db_path(root)
        result = export_report_file(
            db_path=db_path,
            project_id=project_id,
            exports_dir=workspace_exports_path(workspace_root),
            file_format=file_format,
        )
    except (FileNotFoundError, ValueError, ReviewError) as exc:
        raise _fail(exc) from exc

    typer.echo(f"Exported {result.row_count} rows: {result.path}")


@app.command("add-user")
def add_user_command(
    project_id: str = typer.Argument(..., help="Project id."),
    user_id: str = typer.Argument(..., help="User id to assign."),
    root: Path | None = RootOption,
) -> None:
    """Assign a user to a project."""

    try:
        _, db_path = _db_path(root)
        add_user_to_project(db_path=db_path, project_id=project_id, user_id=user_id)
    except (FileNotFoundError, ReviewError) as exc:
        raise _fail(exc) from exc

    typer.echo(f"{user_id} assigned to {project_id}")


@app.command("delete-project")
def delete_project_command(
    project_id: str = typer.Argument(..., help="Project id."),
    root: Path | None = RootOption,
) -> None:
    """Delete a project with its segments, issues and memberships."""

    try:
        _, db_path = _db_path(root)
        deleted = delete_project(db_path=db_path, project_id=project_id)
    except (FileNotFoundError, ReviewError) as exc:
        raise _fail(exc) from exc

    if not deleted:
        raise _fail(LookupError(f"Project not found: {project_id}"))
    typer.echo(f"Project deleted: {project_id}")


if __name__ == "__main__":
    app()
