from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from uuid import uuid4

from sqlalchemy import text
from sqlalchemy.engine import Connection


@dataclass(slots=True, frozen=True)
class BitextSegment:
    segment_num: int
    source_text: str
    target_text: str


@dataclass(slots=True)
class SegmentRow:
    id: str
    project_id: str
    segment_num: int
    source_text: str
    target_text: str


def create_segments(
    connection: Connection,
    segments: Sequence[BitextSegment],
    project_id: str,
) -> int:
    if not segments:
        return 0

    connection.execute(
        text(
            """
            INSERT INTO segments(id, project_id, segment_num, source_text, target_text)
            VALUES (:id, :project_id, :segment_num, :source_text, :target_text)
            """
        ),
        [
            {
                "id": str(uuid4()),
                "project_id": project_id,
                "segment_num": segment.segment_num,
                "source_text": segment.source_text,
                "target_text": segment.target_text,
            }
            for segment in segments
        ],
    )
    return len(segments)


def delete_segments(connection: Connection, project_id: str) -> int:
    result = connection.execute(
        text("DELETE FROM segments WHERE project_id = :project_id"),
        {"project_id": project_id},
    )
    return int(result.rowcount or 0)


def list_segments(connection: Connection, project_id: str) -> list[SegmentRow]:
    rows = connection.execute(
        text(
            """
            SELECT id, project_id, segment_num, source_text, target_text
            FROM segments
            WHERE project_id = :project_id
            ORDER BY segment_num, id
            """
        ),
        {"project_id": project_id},
    ).all()

    return [
        SegmentRow(
            id=str(row[0]),
            project_id=str(row[1]),
            segment_num=int(row[2]),
            source_text=str(row[3]),
            target_text=str(row[4]),
        )
        for row in rows
    ]


def has_segment_issues(connection: Connection, project_id: str) -> bool:
    row = connection.execute(
        text(
            """
            SELECT 1
            FROM segment_issues AS si
            INNER JOIN segments AS s
                ON s.id = si.segment_id
            WHERE s.project_id = :project_id
            LIMIT 1
            """
        ),
        {"project_id": project_id},
    ).first()
    return row is not None
