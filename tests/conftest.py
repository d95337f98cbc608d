from __future__ import annotations

from pathlib import Path

import pytest

from mqm_core.project.files import FileParser, ParsedBitext, UploadedFile
from mqm_core.project.upsert_service import UpsertRequest, upsert_project
from mqm_core.review.segment_store import BitextSegment
from mqm_core.typology.catalog_store import CatalogIssue, import_typology
from mqm_core.typology.validator import MetricEntry

TYPOLOGY = [
    CatalogIssue(issue_id="accuracy", parent_id=None, name="Accuracy"),
    CatalogIssue(issue_id="mistranslation", parent_id="accuracy", name="Mistranslation"),
    CatalogIssue(issue_id="omission", parent_id="accuracy", name="Omission"),
    CatalogIssue(issue_id="fluency", parent_id=None, name="Fluency"),
    CatalogIssue(issue_id="grammar", parent_id="fluency", name="Grammar"),
    CatalogIssue(issue_id="spelling", parent_id="fluency", name="Spelling"),
]


class TabSeparatedParser(FileParser):
    """Test double: ``source<TAB>target`` bitext lines, ``issue,parent`` metric lines."""

    def parse_bitext(self, raw: str) -> tuple[str | None, ParsedBitext | None]:
        segments: list[BitextSegment] = []
        source_words = 0
        target_words = 0
        for index, line in enumerate(raw.splitlines(), start=1):
            if "\t" not in line:
                return f"Line {index} does not have two columns", None
            source_text, target_text = line.split("\t", 1)
            segments.append(BitextSegment(segment_num=index, source_text=source_text, target_text=target_text))
            source_words += len(source_text.split())
            target_words += len(target_text.split())
        return None, ParsedBitext(
            segments=tuple(segments),
            source_word_count=source_words,
            target_word_count=target_words,
        )

    def parse_metric_file(self, raw: str) -> tuple[str | None, list[MetricEntry]]:
        if raw.startswith("<broken"):
            return "Unexpected end of input", []
        entries: list[MetricEntry] = []
        for line in raw.splitlines():
            if not line.strip():
                continue
            issue_id, _, parent_id = line.partition(",")
            entries.append(MetricEntry(issue_id=issue_id.strip(), parent_id=parent_id.strip() or None))
        return None, entries

    def parse_specifications_file(self, raw: str) -> tuple[str | None, str]:
        return None, raw.strip()


def bitext_file(rows: list[tuple[str, str]], name: str = "bitext.tsv") -> UploadedFile:
    content = "\n".join(f"{source}\t{target}" for source, target in rows)
    return UploadedFile(name=name, data=content.encode("utf-8"))


def metric_file(lines: list[str], name: str = "metric.xml") -> UploadedFile:
    return UploadedFile(name=name, data="\n".join(lines).encode("utf-8"))


DEFAULT_BITEXT = [
    ("The cat sleeps", "Die Katze schläft"),
    ("It is raining today", "Es regnet heute"),
]
DEFAULT_METRIC = ["accuracy", "mistranslation,accuracy", "fluency", "grammar,fluency"]


@pytest.fixture
def parser() -> TabSeparatedParser:
    return TabSeparatedParser()


@pytest.fixture
def empty_db_path(tmp_path: Path) -> Path:
    return tmp_path / "workspace" / "review.db"


@pytest.fixture
def db_path(empty_db_path: Path) -> Path:
    import_typology(db_path=empty_db_path, issues=TYPOLOGY)
    return empty_db_path


@pytest.fixture
def created_project_id(db_path: Path, parser: TabSeparatedParser) -> str:
    result = upsert_project(
        db_path=db_path,
        request=UpsertRequest(
            caller_role="admin",
            caller_user_id="alice",
            name="Novel chapter 1",
            bitext_file=bitext_file(DEFAULT_BITEXT),
            metric_file=metric_file(DEFAULT_METRIC),
        ),
        parser=parser,
    )
    return result.project_id
