from __future__ import annotations

from mqm_core.errors import ValidationError

SEVERITY_WEIGHTS: dict[str, int] = {
    "neutral": 0,
    "minor": 1,
    "major": 5,
    "critical": 25,
}
MAX_SCORE_VALUE = 100


def severity_weight(level: str | None) -> int:
    if level is None:
        return 0
    try:
        return SEVERITY_WEIGHTS[level]
    except KeyError as exc:
        raise ValidationError(f"Unknown severity level: {level}") from exc
