"""Uploaded files and the parser collaborator that turns them into records.

The concrete bitext, metric and specifications parsers live outside the
review core. They report failures as ``(error, value)`` outcomes instead of
raising, so the upsert pipeline can reject a bad file before any write.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from mqm_core.review.segment_store import BitextSegment
from mqm_core.typology.validator import MetricEntry


@dataclass(slots=True, frozen=True)
class UploadedFile:
    name: str
    data: bytes

    def decode(self, encoding: str = "utf-8") -> str:
        return self.data.decode(encoding)


@dataclass(slots=True, frozen=True)
class ParsedBitext:
    segments: tuple[BitextSegment, ...]
    source_word_count: int
    target_word_count: int


class FileParser(ABC):
    @abstractmethod
    def parse_bitext(self, raw: str) -> tuple[str | None, ParsedBitext | None]:
        """Split a bi-column bitext into numbered segments and word counts."""

    @abstractmethod
    def parse_metric_file(self, raw: str) -> tuple[str | None, list[MetricEntry]]:
        """Extract the issue types selected by a metric file."""

    @abstractmethod
    def parse_specifications_file(self, raw: str) -> tuple[str | None, str]:
        """Extract the specifications text."""
