from __future__ import annotations

from sqlalchemy import Index
from sqlmodel import Field, SQLModel


class Project(SQLModel, table=True):
    __tablename__ = "projects"

    id: str = Field(primary_key=True)
    name: str
    finished: bool = Field(default=False)
    last_segment: int = Field(default=1)
    bitext_file: str = Field(default="")
    metric_file: str = Field(default="")
    specifications_file: str = Field(default="")
    specifications: str = Field(default="")
    source_word_count: int = Field(default=0)
    target_word_count: int = Field(default=0)
    created_at: str
    updated_at: str


class Segment(SQLModel, table=True):
    __tablename__ = "segments"
    __table_args__ = (Index("idx_segments_project_segment_num", "project_id", "segment_num"),)

    id: str = Field(primary_key=True)
    project_id: str
    segment_num: int
    source_text: str
    target_text: str
