from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd

from mqm_core.export.json_report import build_json_report
from mqm_core.scoring.report import REPORT_COLUMNS, create_report

_SAFE_CHARS = re.compile(r"[^a-zA-Z0-9_-]+")
EXPORT_FORMATS = ("csv", "xlsx", "json")


@dataclass(slots=True)
class ExportReportResult:
    path: Path
    row_count: int
    file_format: str


def _utc_timestamp_token() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")


def _safe_fragment(value: str) -> str:
    cleaned = _SAFE_CHARS.sub("_", value.strip())
    return cleaned.strip("_") or "report"


def export_report_file(
    *,
    db_path: Path,
    project_id: str,
    exports_dir: Path,
    file_format: str,
    filename_prefix: str = "report",
) -> ExportReportResult:
    normalized_format = file_format.strip().lower()
    if normalized_format not in EXPORT_FORMATS:
        raise ValueError("file_format must be 'csv', 'xlsx' or 'json'")

    exports_dir = Path(exports_dir)
    exports_dir.mkdir(parents=True, exist_ok=True)
    filename = (
        f"{_safe_fragment(filename_prefix)}_"
        f"{project_id[:8]}_"
        f"{_utc_timestamp_token()}."
        f"{normalized_format}"
    )
    output_path = exports_dir / filename

    if normalized_format == "json":
        payload = build_json_report(db_path=db_path, project_id=project_id)
        output_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        return ExportReportResult(
            path=output_path,
            row_count=len(payload["errors"]),
            file_format=normalized_format,
        )

    report = create_report(db_path=db_path, project_id=project_id)
    records = [
        {"issue_id": issue_id, **dict(zip(REPORT_COLUMNS, counts))}
        for issue_id, counts in report.items()
    ]
    dataframe = pd.DataFrame.from_records(records, columns=["issue_id", *REPORT_COLUMNS])

    if normalized_format == "csv":
        dataframe.to_csv(output_path, index=False)
    else:
        dataframe.to_excel(output_path, index=False, engine="openpyxl")

    return ExportReportResult(
        path=output_path,
        row_count=len(records),
        file_format=normalized_format,
    )
