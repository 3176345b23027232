# apiprobe/scoring.py
from typing import Iterable, Optional

from .errors import FailureKind
from .models import BASE_SCORE, ProbeOutcome


def outcome(name: str, weight: int, passed: bool, message: str, kind: Optional[FailureKind] = None) -> ProbeOutcome:
    return ProbeOutcome(
        name=name,
        passed=passed,
        message=message,
        score_delta=0 if passed else -weight,
        kind=None if passed else kind,
    )


def compute_score(outcomes: Iterable[ProbeOutcome]) -> int:
    """100 minus the weight of every failed probe. Not clamped: scores can go negative."""
    return BASE_SCORE + sum(o.score_delta for o in outcomes if not o.passed)


def risk_level(score: int) -> str:
    if score >= 90:
        return "low"
    if score >= 70:
        return "medium"
    return "high"
