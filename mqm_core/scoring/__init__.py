"""Severity weights, per-issue reports and the composite quality score."""

from mqm_core.scoring.report import REPORT_COLUMNS, build_report, create_report, report_vector
from mqm_core.scoring.score import (
    ScoreBreakdown,
    absolute_penalty_total,
    compute_score,
    generate_project_score,
    score_breakdown,
)
from mqm_core.scoring.severity import MAX_SCORE_VALUE, SEVERITY_WEIGHTS, severity_weight

__all__ = [
    "MAX_SCORE_VALUE",
    "REPORT_COLUMNS",
    "SEVERITY_WEIGHTS",
    "ScoreBreakdown",
    "absolute_penalty_total",
    "build_report",
    "compute_score",
    "create_report",
    "generate_project_score",
    "report_vector",
    "score_breakdown",
    "severity_weight",
]
