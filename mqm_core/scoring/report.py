from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from pathlib import Path

from sqlalchemy.engine import Connection

from mqm_core.constants import SEVERITY_LEVELS, SIDE_SOURCE, SIDE_TARGET
from mqm_core.db.schema import initialize_database
from mqm_core.review.issue_store import IssueGroup, get_project_report_by_id

REPORT_COLUMNS = (
    "source_neutral",
    "source_minor",
    "source_major",
    "source_critical",
    "source_total",
    "target_neutral",
    "target_minor",
    "target_major",
    "target_critical",
    "target_total",
    "total",
)


def report_vector(group: IssueGroup) -> list[int]:
    counts = Counter(
        (side, level)
        for level, side in zip(group.levels, group.types)
        if level is not None and side is not None
    )

    source = [counts[(SIDE_SOURCE, level)] for level in SEVERITY_LEVELS]
    target = [counts[(SIDE_TARGET, level)] for level in SEVERITY_LEVELS]
    source_total = sum(source)
    target_total = sum(target)

    return [*source, source_total, *target, target_total, source_total + target_total]


def build_report(groups: Sequence[IssueGroup]) -> dict[str, list[int]]:
    """Map each catalog issue id to its 11 severity/side counts (see ``REPORT_COLUMNS``)."""

    return {group.issue_id: report_vector(group) for group in groups}


def create_report_on_connection(connection: Connection, project_id: str) -> dict[str, list[int]]:
    return build_report(get_project_report_by_id(connection, project_id))


def create_report(*, db_path: Path, project_id: str) -> dict[str, list[int]]:
    engine = initialize_database(Path(db_path))
    try:
        with engine.connect() as connection:
            return create_report_on_connection(connection, project_id)
    finally:
        engine.dispose()
