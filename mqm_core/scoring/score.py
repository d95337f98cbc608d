"""Composite quality score.

Definitions:
    APT   absolute penalty total
    ONPT  overall normed penalty total
    OQF   overall quality fraction
    MSV   maximum score value
    OQS   overall quality score

Word counts are fixed when the bitext is ingested; the score is recomputed
from the current reported issues on every read.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.engine import Connection

from mqm_core.db.schema import initialize_database
from mqm_core.errors import NotFoundError, ScoreUndefinedError
from mqm_core.review.issue_store import IssueGroup, get_project_report_by_id
from mqm_core.scoring.severity import MAX_SCORE_VALUE, severity_weight


@dataclass(slots=True, frozen=True)
class ScoreBreakdown:
    apt: int
    onpt: float
    oqf: float
    oqs: float


def absolute_penalty_total(groups: Sequence[IssueGroup]) -> int:
    return sum(severity_weight(level) for group in groups for level in group.levels)


def score_breakdown(
    groups: Sequence[IssueGroup],
    source_word_count: int,
    target_word_count: int,
    *,
    project_id: str | None = None,
) -> ScoreBreakdown:
    if source_word_count <= 0 or target_word_count <= 0:
        raise ScoreUndefinedError(project_id, source_word_count, target_word_count)

    apt = absolute_penalty_total(groups)
    onpt = (apt * source_word_count) / target_word_count
    oqf = 1 - (onpt / source_word_count)
    oqs = round(oqf * MAX_SCORE_VALUE, 2)
    return ScoreBreakdown(apt=apt, onpt=onpt, oqf=oqf, oqs=oqs)


def compute_score(
    groups: Sequence[IssueGroup],
    source_word_count: int,
    target_word_count: int,
) -> float:
    return score_breakdown(groups, source_word_count, target_word_count).oqs


def project_score_breakdown(connection: Connection, project_id: str) -> ScoreBreakdown:
    project_row = connection.execute(
        text(
            """
            SELECT source_word_count, target_word_count
            FROM projects
            WHERE id = :project_id
            LIMIT 1
            """
        ),
        {"project_id": project_id},
    ).first()
    if project_row is None:
        raise NotFoundError(f"Project not found: {project_id}")

    groups = get_project_report_by_id(connection, project_id)
    return score_breakdown(
        groups,
        int(project_row[0] or 0),
        int(project_row[1] or 0),
        project_id=project_id,
    )


def generate_project_score(*, db_path: Path, project_id: str) -> float:
    engine = initialize_database(Path(db_path))
    try:
        with engine.connect() as connection:
            return project_score_breakdown(connection, project_id).oqs
    finally:
        engine.dispose()
