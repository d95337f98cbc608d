from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy.engine import Connection

from mqm_core.errors import TypologyMismatchError
from mqm_core.typology.catalog_store import get_issue_by_id


@dataclass(slots=True, frozen=True)
class MetricEntry:
    """One issue type selected by an uploaded metric file."""

    issue_id: str
    parent_id: str | None
    display_name: str | None = None
    display: bool = True


def validate_metric_entries(
    connection: Connection,
    entries: Sequence[MetricEntry],
) -> list[MetricEntry]:
    """Check every metric entry against the catalog, all-or-nothing.

    Each entry must exist in the catalog and its catalog parent must equal the
    parent the metric file declares (``None`` for root categories). The first
    offending entry raises ``TypologyMismatchError``; otherwise the entries are
    returned in input order.
    """

    validated: list[MetricEntry] = []
    for entry in entries:
        catalog_issue = get_issue_by_id(connection, entry.issue_id)
        if catalog_issue is None:
            raise TypologyMismatchError(
                f'Issue type "{entry.issue_id}" does not exist in the typology',
                issue_id=entry.issue_id,
            )

        if catalog_issue.parent_id != entry.parent_id:
            raise TypologyMismatchError(
                f'Issue type "{entry.issue_id}" does not have the parent issue type "{entry.parent_id}" '
                f'(typology parent: "{catalog_issue.parent_id}")',
                issue_id=entry.issue_id,
                expected_parent=catalog_issue.parent_id,
            )

        validated.append(entry)

    return validated
