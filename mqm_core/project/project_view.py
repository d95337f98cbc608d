from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from sqlmodel import select

from mqm_core.db.models import Project, Segment
from mqm_core.db.schema import initialize_database
from mqm_core.db.session import session_for_db
from mqm_core.errors import NotFoundError, ScoreUndefinedError
from mqm_core.project.membership import list_project_users
from mqm_core.review.issue_store import (
    ProjectIssueRow,
    SegmentIssueRow,
    get_project_issues_by_id,
    get_segment_issues_by_project_id,
)
from mqm_core.scoring.report import create_report_on_connection
from mqm_core.scoring.score import project_score_breakdown


@dataclass(slots=True)
class SegmentView:
    id: str
    segment_num: int
    source_text: str
    target_text: str
    source_errors: list[SegmentIssueRow] = field(default_factory=list)
    target_errors: list[SegmentIssueRow] = field(default_factory=list)


@dataclass(slots=True)
class ProjectOverview:
    project: Project
    report: dict[str, list[int]]
    users: list[str]
    segments: list[SegmentView]
    issues: list[ProjectIssueRow]
    score: float | None


def get_project_overview(*, db_path: Path, project_id: str) -> ProjectOverview:
    """Collect everything a reviewer sees for one project.

    The score is ``None`` when the project has no words on either side.
    """

    initialize_database(Path(db_path)).dispose()

    with session_for_db(Path(db_path)) as session:
        project = session.get(Project, project_id)
        if project is None:
            raise NotFoundError(f"Project not found: {project_id}")

        segments = session.exec(
            select(Segment)
            .where(Segment.project_id == project_id)
            .order_by(Segment.segment_num, Segment.id)
        ).all()

        connection = session.connection()
        segment_issues = get_segment_issues_by_project_id(connection, project_id)
        report = create_report_on_connection(connection, project_id)
        users = list_project_users(connection, project_id)
        issues = get_project_issues_by_id(connection, project_id)
        try:
            score: float | None = project_score_breakdown(connection, project_id).oqs
        except ScoreUndefinedError:
            score = None

        session.expunge(project)

    views = {
        segment.id: SegmentView(
            id=segment.id,
            segment_num=segment.segment_num,
            source_text=segment.source_text,
            target_text=segment.target_text,
        )
        for segment in segments
    }
    for issue in segment_issues:
        view = views.get(issue.segment_id)
        if view is None:
            continue
        if issue.type == "source":
            view.source_errors.append(issue)
        else:
            view.target_errors.append(issue)

    return ProjectOverview(
        project=project,
        report=report,
        users=users,
        segments=list(views.values()),
        issues=issues,
        score=score,
    )
