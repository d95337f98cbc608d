"""Project report exports."""

from mqm_core.export.export_report import EXPORT_FORMATS, ExportReportResult, export_report_file
from mqm_core.export.json_report import build_json_report

__all__ = [
    "EXPORT_FORMATS",
    "ExportReportResult",
    "build_json_report",
    "export_report_file",
]
