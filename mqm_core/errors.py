"""Error taxonomy shared by the upsert pipeline and the scoring read path."""

from __future__ import annotations


class ReviewError(RuntimeError):
    """Base exception for review-core failures with a caller-facing message."""


class ValidationError(ReviewError, ValueError):
    """Raised for malformed or missing caller input, before any write."""


class ScoreUndefinedError(ValidationError):
    """Raised when a project's word counts make the quality score undefined."""

    def __init__(self, project_id: str | None, source_word_count: int, target_word_count: int) -> None:
        self.project_id = project_id
        self.source_word_count = source_word_count
        self.target_word_count = target_word_count
        super().__init__(
            "Quality score is undefined for a project without words "
            f"(source={source_word_count}, target={target_word_count})."
        )


class TypologyMismatchError(ReviewError):
    """Raised when a metric entry is unknown to the catalog or has the wrong parent."""

    def __init__(self, message: str, *, issue_id: str, expected_parent: str | None = None) -> None:
        self.issue_id = issue_id
        self.expected_parent = expected_parent
        super().__init__(message)


class PreconditionFailedError(ReviewError):
    """Raised when the catalog is missing or project files are locked."""


class ConflictError(ReviewError):
    """Raised for duplicate associations such as a repeated user-project mapping."""


class NotFoundError(ReviewError):
    """Raised when a referenced project does not exist."""


class StorageError(ReviewError):
    """Raised for any failure during a transactional write. The write is rolled back."""
