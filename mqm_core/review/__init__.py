"""Segment and reported-issue storage."""

from mqm_core.review.issue_store import (
    IssueGroup,
    ProjectIssueRow,
    SegmentIssueRow,
    create_project_issue,
    create_segment_issue,
    delete_project_issues,
    delete_segment_issue_by_id,
    get_project_issues_by_id,
    get_project_report_by_id,
    get_segment_issues_by_project_id,
    get_segment_issues_by_segment_id,
)
from mqm_core.review.segment_store import (
    BitextSegment,
    SegmentRow,
    create_segments,
    delete_segments,
    has_segment_issues,
    list_segments,
)

__all__ = [
    "BitextSegment",
    "IssueGroup",
    "ProjectIssueRow",
    "SegmentIssueRow",
    "SegmentRow",
    "create_project_issue",
    "create_segment_issue",
    "create_segments",
    "delete_project_issues",
    "delete_segment_issue_by_id",
    "delete_segments",
    "get_project_issues_by_id",
    "get_project_report_by_id",
    "get_segment_issues_by_project_id",
    "get_segment_issues_by_segment_id",
    "has_segment_issues",
    "list_segments",
]
