"""Global issue-type catalog (typology) and metric validation."""

from mqm_core.typology.catalog_store import (
    CatalogIssue,
    get_all_issues,
    get_issue_by_id,
    import_typology,
    is_typology_imported,
    load_typology_file,
)
from mqm_core.typology.validator import MetricEntry, validate_metric_entries

__all__ = [
    "CatalogIssue",
    "MetricEntry",
    "get_all_issues",
    "get_issue_by_id",
    "import_typology",
    "is_typology_imported",
    "load_typology_file",
    "validate_metric_entries",
]
