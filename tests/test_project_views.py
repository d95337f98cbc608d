from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import bitext_file
from mqm_core.db.schema import initialize_database
from mqm_core.errors import ConflictError, NotFoundError, ValidationError
from mqm_core.export.export_report import export_report_file
from mqm_core.export.json_report import build_json_report
from mqm_core.project.membership import (
    add_user_to_project,
    is_user_assigned_to_project,
    remove_user_from_all_projects,
    remove_user_from_project,
)
from mqm_core.project.project_store import delete_project, list_projects
from mqm_core.project.project_view import get_project_overview
from mqm_core.project.upsert_service import UpsertRequest, upsert_project
from mqm_core.review.issue_store import (
    create_segment_issue,
    delete_segment_issue_by_id,
    get_segment_issues_by_segment_id,
)
from mqm_core.scoring.score import generate_project_score


def _report_issue(db_path: Path, project_id: str, *, segment_index: int = 0, **fields) -> str:
    overview = get_project_overview(db_path=db_path, project_id=project_id)
    return create_segment_issue(db_path=db_path, segment_id=overview.segments[segment_index].id, **fields)


def test_add_user_twice_is_a_conflict(db_path: Path, created_project_id: str) -> None:
    add_user_to_project(db_path=db_path, project_id=created_project_id, user_id="carol")

    with pytest.raises(ConflictError, match="carol has already been assigned"):
        add_user_to_project(db_path=db_path, project_id=created_project_id, user_id="carol")

    assert get_project_overview(db_path=db_path, project_id=created_project_id).users == ["alice", "carol"]


def test_add_user_to_missing_project_is_not_found(db_path: Path) -> None:
    with pytest.raises(NotFoundError):
        add_user_to_project(db_path=db_path, project_id="missing", user_id="carol")


def test_project_visibility_follows_membership(db_path: Path, created_project_id: str) -> None:
    assert [project.id for project in list_projects(db_path=db_path, user_id="alice", role="user")] == [
        created_project_id
    ]
    assert list_projects(db_path=db_path, user_id="dave", role="user") == []
    assert len(list_projects(db_path=db_path, user_id="dave", role="superadmin")) == 1

    assert is_user_assigned_to_project(db_path=db_path, project_id=created_project_id, user_id="alice", role="user")
    assert not is_user_assigned_to_project(db_path=db_path, project_id=created_project_id, user_id="dave", role="user")
    assert is_user_assigned_to_project(
        db_path=db_path, project_id=created_project_id, user_id="dave", role="superadmin"
    )

    add_user_to_project(db_path=db_path, project_id=created_project_id, user_id="dave")
    assert remove_user_from_project(db_path=db_path, project_id=created_project_id, user_id="dave") == 1
    assert remove_user_from_all_projects(db_path=db_path, user_id="alice") == 1
    assert list_projects(db_path=db_path, user_id="alice", role="user") == []


def test_overview_splits_segment_errors_by_side(db_path: Path, created_project_id: str) -> None:
    _report_issue(db_path, created_project_id, issue_id="mistranslation", side="target", level="critical")
    _report_issue(db_path, created_project_id, issue_id="grammar", side="source", level="neutral")

    overview = get_project_overview(db_path=db_path, project_id=created_project_id)

    first = overview.segments[0]
    assert [issue.issue_id for issue in first.target_errors] == ["mistranslation"]
    assert [issue.issue_id for issue in first.source_errors] == ["grammar"]
    assert overview.segments[1].source_errors == []
    assert [issue.issue_id for issue in overview.issues] == ["accuracy", "fluency", "grammar", "mistranslation"]
    assert overview.project.source_word_count == 7
    assert overview.score == pytest.approx(round((1 - (25 * 7 / 6) / 7) * 100, 2))


def test_segment_issues_are_listed_per_segment(db_path: Path, created_project_id: str) -> None:
    first_id = _report_issue(db_path, created_project_id, issue_id="grammar", side="target", level="minor", note="agr")
    _report_issue(db_path, created_project_id, segment_index=1, issue_id="mistranslation", side="target", level="major")

    segment_id = get_project_overview(db_path=db_path, project_id=created_project_id).segments[0].id
    engine = initialize_database(db_path)
    try:
        with engine.connect() as connection:
            rows = get_segment_issues_by_segment_id(connection, segment_id)
    finally:
        engine.dispose()

    assert [(row.id, row.issue_name, row.level, row.note) for row in rows] == [(first_id, "Grammar", "minor", "agr")]

    with pytest.raises(NotFoundError):
        create_segment_issue(db_path=db_path, segment_id="missing", issue_id="grammar", side="target", level="minor")


def test_issue_outside_project_metric_is_rejected(db_path: Path, created_project_id: str) -> None:
    with pytest.raises(ValidationError, match='"spelling" is not part of this project'):
        _report_issue(db_path, created_project_id, issue_id="spelling", side="target", level="critical")

    assert build_json_report(db_path=db_path, project_id=created_project_id)["errors"] == []
    assert generate_project_score(db_path=db_path, project_id=created_project_id) == 100.0

    _report_issue(db_path, created_project_id, issue_id="grammar", side="target", level="critical")
    assert generate_project_score(db_path=db_path, project_id=created_project_id) < 100.0


def test_overview_score_is_none_for_project_without_words(
    db_path: Path, parser, created_project_id: str
) -> None:
    upsert_project(
        db_path=db_path,
        request=UpsertRequest(
            caller_role="admin",
            caller_user_id="alice",
            project_id=created_project_id,
            bitext_file=bitext_file([("", "")]),
        ),
        parser=parser,
    )

    assert get_project_overview(db_path=db_path, project_id=created_project_id).score is None
    assert build_json_report(db_path=db_path, project_id=created_project_id)["scores"] == {"compositeScore": None}


def test_json_export_of_project_without_words(tmp_path: Path, db_path: Path, parser, created_project_id: str) -> None:
    upsert_project(
        db_path=db_path,
        request=UpsertRequest(
            caller_role="admin",
            caller_user_id="alice",
            project_id=created_project_id,
            bitext_file=bitext_file([("", "")]),
        ),
        parser=parser,
    )

    result = export_report_file(
        db_path=db_path,
        project_id=created_project_id,
        exports_dir=tmp_path / "exports",
        file_format="json",
    )

    payload = json.loads(result.path.read_text(encoding="utf-8"))
    assert payload["scores"]["compositeScore"] is None
    assert payload["segments"] == {"source": [""], "target": [""]}


def test_overview_of_missing_project_is_not_found(db_path: Path) -> None:
    with pytest.raises(NotFoundError):
        get_project_overview(db_path=db_path, project_id="missing")


def test_json_report_lists_errors_metric_and_segments(db_path: Path, created_project_id: str) -> None:
    report_id = _report_issue(
        db_path,
        created_project_id,
        segment_index=1,
        issue_id="grammar",
        side="target",
        level="minor",
        note="agreement",
        highlight_start_index=0,
        highlight_end_index=2,
    )

    payload = build_json_report(db_path=db_path, project_id=created_project_id)

    assert payload["projectName"] == "Novel chapter 1"
    assert sorted(payload["key"].values()) == ["1", "2"]
    assert payload["errors"] == [
        {
            "segment": payload["errors"][0]["segment"],
            "target": "target",
            "name": "Grammar",
            "severity": "minor",
            "issueReportId": report_id,
            "issueId": "grammar",
            "note": "agreement",
            "highlighting": {"startIndex": 0, "endIndex": 2},
        }
    ]
    assert payload["key"][payload["errors"][0]["segment"]] == "2"
    assert {item["issueId"] for item in payload["metric"]} == {"accuracy", "mistranslation", "fluency", "grammar"}
    assert payload["segments"]["source"] == ["The cat sleeps", "It is raining today"]
    assert payload["scores"]["compositeScore"] == pytest.approx(round((1 - (1 * 7 / 6) / 7) * 100, 2))

    assert delete_segment_issue_by_id(db_path=db_path, issue_report_id=report_id) is True
    assert build_json_report(db_path=db_path, project_id=created_project_id)["errors"] == []


def test_export_report_csv_and_json(tmp_path: Path, db_path: Path, created_project_id: str) -> None:
    pd = pytest.importorskip("pandas")
    _report_issue(db_path, created_project_id, issue_id="mistranslation", side="source", level="major")

    exports_dir = tmp_path / "exports"
    csv_result = export_report_file(
        db_path=db_path,
        project_id=created_project_id,
        exports_dir=exports_dir,
        file_format="CSV",
    )

    assert csv_result.file_format == "csv"
    assert csv_result.row_count == 4
    assert csv_result.path.parent == exports_dir

    exported = pd.read_csv(csv_result.path)
    row = exported[exported["issue_id"] == "mistranslation"].iloc[0].to_dict()
    assert row["source_major"] == 1
    assert row["total"] == 1

    json_result = export_report_file(
        db_path=db_path,
        project_id=created_project_id,
        exports_dir=exports_dir,
        file_format="json",
    )
    payload = json.loads(json_result.path.read_text(encoding="utf-8"))
    assert json_result.row_count == 1
    assert payload["errors"][0]["issueId"] == "mistranslation"


def test_export_report_xlsx(tmp_path: Path, db_path: Path, created_project_id: str) -> None:
    pd = pytest.importorskip("pandas")
    pytest.importorskip("openpyxl")

    result = export_report_file(
        db_path=db_path,
        project_id=created_project_id,
        exports_dir=tmp_path / "exports",
        file_format="xlsx",
    )

    exported = pd.read_excel(result.path)
    assert list(exported.columns)[:2] == ["issue_id", "source_neutral"]
    assert set(exported["issue_id"]) == {"accuracy", "mistranslation", "fluency", "grammar"}


def test_export_report_rejects_unknown_format(tmp_path: Path, db_path: Path, created_project_id: str) -> None:
    with pytest.raises(ValueError, match="file_format"):
        export_report_file(
            db_path=db_path,
            project_id=created_project_id,
            exports_dir=tmp_path,
            file_format="pdf",
        )


def test_delete_project_cascades(db_path: Path, created_project_id: str) -> None:
    _report_issue(db_path, created_project_id, issue_id="grammar", side="source", level="minor")

    assert delete_project(db_path=db_path, project_id=created_project_id) is True
    assert delete_project(db_path=db_path, project_id=created_project_id) is False
    assert list_projects(db_path=db_path, user_id="alice", role="superadmin") == []
