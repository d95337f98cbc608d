"""Atomic creation and update of review projects.

An upsert runs in three phases. Preconditions are checked on a read-only
connection, uploaded files are parsed into an immutable plan, and the plan is
applied inside exactly one transaction. Nothing is written unless every step
of the last phase succeeds.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from pathlib import Path

import structlog
from sqlalchemy.engine import Connection

from mqm_core.constants import ELEVATED_ROLES
from mqm_core.db.schema import initialize_database
from mqm_core.db.session import transaction_scope
from mqm_core.errors import NotFoundError, PreconditionFailedError, ValidationError
from mqm_core.project.files import FileParser, ParsedBitext, UploadedFile
from mqm_core.project.membership import map_user_to_project
from mqm_core.project.project_store import create_project_row, get_project_by_id, set_project_attributes
from mqm_core.review.issue_store import create_project_issue, delete_project_issues
from mqm_core.review.segment_store import create_segments, delete_segments, has_segment_issues
from mqm_core.typology.catalog_store import is_typology_imported
from mqm_core.typology.validator import MetricEntry, validate_metric_entries

logger = structlog.get_logger(__name__)

MESSAGE_CREATED = "Project created successfully."
MESSAGE_UPDATED = "Project updated successfully."
MESSAGE_INSUFFICIENT_FILES = (
    "Insufficient files submitted: Request requires a project name, metric file, and bi-text file"
)


@dataclass(slots=True, frozen=True)
class UpsertRequest:
    caller_role: str
    caller_user_id: str
    project_id: str | None = None
    name: str | None = None
    finished: bool | None = None
    segment_num: int | None = None
    bitext_file: UploadedFile | None = None
    metric_file: UploadedFile | None = None
    specifications_file: UploadedFile | None = None

    @property
    def is_update(self) -> bool:
        return self.project_id is not None


@dataclass(slots=True, frozen=True)
class UpsertResult:
    project_id: str
    created: bool
    message: str
    updated_fields: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class _UpsertPlan:
    attributes: tuple[tuple[str, object], ...]
    metric: tuple[MetricEntry, ...] | None
    bitext: ParsedBitext | None
    specifications: str | None


def _validate_request(request: UpsertRequest) -> None:
    if not request.is_update:
        if request.name is None or request.bitext_file is None or request.metric_file is None:
            raise ValidationError(MESSAGE_INSUFFICIENT_FILES)
        if not request.caller_user_id:
            raise ValidationError("A creating user is required to create a project")

    if request.name is not None and not request.name.strip():
        raise ValidationError("Project name must not be empty")

    if request.segment_num is not None and request.segment_num < 1:
        raise ValidationError(f"Segment number must be at least 1: {request.segment_num}")


def _check_preconditions(connection: Connection, request: UpsertRequest) -> None:
    if not is_typology_imported(connection):
        raise PreconditionFailedError("Typology not yet imported. Please contact an administrator for help.")

    if not request.is_update:
        return

    project_id = str(request.project_id)
    if get_project_by_id(connection, project_id) is None:
        raise NotFoundError(f"Project not found: {project_id}")

    carries_locked_files = request.bitext_file is not None or request.metric_file is not None
    if carries_locked_files and has_segment_issues(connection, project_id):
        raise PreconditionFailedError(
            "Changing the bi-text or metric files is not possible until all reported issues are removed."
        )


def _decode(upload: UploadedFile, label: str) -> str:
    try:
        return upload.decode()
    except UnicodeDecodeError as exc:
        raise ValidationError(f"Problem reading {label} file {upload.name}: {exc}") from exc


def _parse_metric(parser: FileParser, upload: UploadedFile) -> tuple[MetricEntry, ...]:
    error, entries = parser.parse_metric_file(_decode(upload, "metric"))
    if error:
        raise ValidationError(f"Problem parsing metric file: {error}")
    if not entries:
        raise ValidationError("No issues found in metric file.")

    seen: set[str] = set()
    for entry in entries:
        if entry.issue_id in seen:
            raise ValidationError(f'Issue type "{entry.issue_id}" is listed more than once in the metric file')
        seen.add(entry.issue_id)
    return tuple(entries)


def _parse_bitext(parser: FileParser, upload: UploadedFile) -> ParsedBitext:
    error, parsed = parser.parse_bitext(_decode(upload, "bi-text"))
    if error:
        raise ValidationError(f"Problem parsing bi-text file: {error}")
    if parsed is None:
        raise ValidationError("No segments found in bi-text file.")
    return parsed


def _parse_specifications(parser: FileParser, upload: UploadedFile) -> str:
    error, specifications = parser.parse_specifications_file(_decode(upload, "specifications"))
    if error:
        raise ValidationError(f"Problem parsing specifications file: {error}")
    return specifications


def _build_plan(request: UpsertRequest, parser: FileParser, *, is_elevated: bool) -> _UpsertPlan:
    # Files on update and renames are honored for elevated callers only.
    process_files = not request.is_update or is_elevated
    attributes: dict[str, object] = {}

    if request.name is not None and is_elevated:
        attributes["name"] = request.name.strip()
    if request.finished is not None:
        attributes["finished"] = bool(request.finished)
    if request.segment_num is not None:
        attributes["last_segment"] = request.segment_num

    metric: tuple[MetricEntry, ...] | None = None
    if request.metric_file is not None and process_files:
        metric = _parse_metric(parser, request.metric_file)
        attributes["metric_file"] = request.metric_file.name

    bitext: ParsedBitext | None = None
    if request.bitext_file is not None and process_files:
        bitext = _parse_bitext(parser, request.bitext_file)
        attributes["bitext_file"] = request.bitext_file.name
        attributes["last_segment"] = 1
        attributes["source_word_count"] = bitext.source_word_count
        attributes["target_word_count"] = bitext.target_word_count

    specifications: str | None = None
    if request.specifications_file is not None and process_files:
        specifications = _parse_specifications(parser, request.specifications_file)
        attributes["specifications_file"] = request.specifications_file.name
        attributes["specifications"] = specifications

    return _UpsertPlan(
        attributes=tuple(attributes.items()),
        metric=metric,
        bitext=bitext,
        specifications=specifications,
    )


def _insert_project(connection: Connection, request: UpsertRequest, plan: _UpsertPlan) -> str:
    if request.name is None or request.metric_file is None or request.bitext_file is None or plan.bitext is None:
        raise ValidationError(MESSAGE_INSUFFICIENT_FILES)

    project_id = create_project_row(
        connection,
        name=request.name.strip(),
        specifications_file=request.specifications_file.name if request.specifications_file else "",
        specifications=plan.specifications or "",
        metric_file=request.metric_file.name,
        bitext_file=request.bitext_file.name,
        source_word_count=plan.bitext.source_word_count,
        target_word_count=plan.bitext.target_word_count,
    )
    map_user_to_project(connection, project_id=project_id, user_id=request.caller_user_id)
    return project_id


def _apply_plan(connection: Connection, request: UpsertRequest, plan: _UpsertPlan) -> str:
    if request.is_update:
        project_id = str(request.project_id)
    else:
        project_id = _insert_project(connection, request, plan)

    if plan.metric is not None:
        validated = validate_metric_entries(connection, plan.metric)
        if request.is_update:
            delete_project_issues(connection, project_id)
        for entry in validated:
            create_project_issue(
                connection,
                project_id=project_id,
                issue_id=entry.issue_id,
                display=entry.display,
            )

    if plan.bitext is not None:
        if request.is_update:
            delete_segments(connection, project_id)
        create_segments(connection, plan.bitext.segments, project_id)

    if request.is_update:
        set_project_attributes(connection, plan.attributes, project_id)

    return project_id


def upsert_project(
    *,
    db_path: Path,
    request: UpsertRequest,
    parser: FileParser,
    elevated_roles: Collection[str] = ELEVATED_ROLES,
) -> UpsertResult:
    _validate_request(request)
    is_elevated = request.caller_role in elevated_roles

    engine = initialize_database(Path(db_path))
    try:
        with engine.connect() as connection:
            _check_preconditions(connection, request)

        plan = _build_plan(request, parser, is_elevated=is_elevated)

        with transaction_scope(engine, operation="upsert_project") as connection:
            project_id = _apply_plan(connection, request, plan)
    finally:
        engine.dispose()

    updated_fields = tuple(field_name for field_name, _ in plan.attributes) if request.is_update else ()
    logger.info(
        "project_upserted",
        project_id=project_id,
        created=not request.is_update,
        updated_fields=list(updated_fields),
        segment_count=len(plan.bitext.segments) if plan.bitext else None,
        metric_issue_count=len(plan.metric) if plan.metric else None,
    )

    return UpsertResult(
        project_id=project_id,
        created=not request.is_update,
        message=MESSAGE_UPDATED if request.is_update else MESSAGE_CREATED,
        updated_fields=updated_fields,
    )
