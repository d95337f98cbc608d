from __future__ import annotations

from pathlib import Path
from typing import Any

from mqm_core.db.schema import initialize_database
from mqm_core.errors import NotFoundError, ScoreUndefinedError
from mqm_core.project.project_store import get_project_by_id
from mqm_core.review.issue_store import get_project_issues_by_id, get_segment_issues_by_project_id
from mqm_core.review.segment_store import list_segments
from mqm_core.scoring.score import project_score_breakdown


def build_json_report(*, db_path: Path, project_id: str) -> dict[str, Any]:
    """Build the machine-readable project report consumed by external scorers."""

    engine = initialize_database(Path(db_path))
    try:
        with engine.connect() as connection:
            project = get_project_by_id(connection, project_id)
            if project is None:
                raise NotFoundError(f"Project not found: {project_id}")

            metric = get_project_issues_by_id(connection, project_id)
            segments = list_segments(connection, project_id)
            segment_issues = get_segment_issues_by_project_id(connection, project_id)
            try:
                composite_score: float | None = project_score_breakdown(connection, project_id).oqs
            except ScoreUndefinedError:
                composite_score = None
    finally:
        engine.dispose()

    return {
        "projectName": project.name,
        "key": {segment.id: str(segment.segment_num) for segment in segments},
        "errors": [
            {
                "segment": issue.segment_id,
                "target": issue.type,
                "name": issue.issue_name,
                "severity": issue.level,
                "issueReportId": issue.id,
                "issueId": issue.issue_id,
                "note": issue.note,
                "highlighting": {
                    "startIndex": issue.highlight_start_index,
                    "endIndex": issue.highlight_end_index,
                },
            }
            for issue in segment_issues
        ],
        "metric": [
            {
                "issueId": item.issue_id,
                "parent": item.parent_id,
                "name": item.name,
                "display": item.display,
            }
            for item in metric
        ],
        "scores": {"compositeScore": composite_score},
        "segments": {
            "source": [segment.source_text for segment in segments],
            "target": [segment.target_text for segment in segments],
        },
    }
