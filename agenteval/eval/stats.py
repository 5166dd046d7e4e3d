"""
Summary statistics over evaluation entries
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Sequence

from .types import CATEGORIES, DIMENSIONS, ERROR_CATEGORY, EvalSummary, EvaluationEntry

CRITICAL_THRESHOLD = 0.7


def round_half_up(value: float, digits: int = 0) -> float:
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def summarize(entries: Sequence[EvaluationEntry], pass_threshold: float = 1.5) -> EvalSummary:
    """
    Compute the task summary

    avg_score is the mean of all dimension scores rounded to one decimal,
    pass_rate the percentage of entries whose mean score reaches
    pass_threshold.
    """
    total = len(entries)
    if total == 0:
        return EvalSummary(avg_score=0.0, total=0, pass_rate=0)

    score_sum = sum(entry.total_score for entry in entries)
    passed = sum(1 for entry in entries if entry.mean_score >= pass_threshold)
    return EvalSummary(
        avg_score=round_half_up(score_sum / (len(DIMENSIONS) * total), 1),
        total=total,
        pass_rate=int(round_half_up(100 * passed / total)),
    )


def dimension_averages(entries: Sequence[EvaluationEntry]) -> Dict[str, float]:
    if not entries:
        return {name: 0.0 for name in DIMENSIONS}
    return {
        name: sum(getattr(entry, name).score for entry in entries) / len(entries)
        for name in DIMENSIONS
    }


def category_breakdown(entries: Sequence[EvaluationEntry]) -> Dict[str, Dict[str, Any]]:
    """Per category sample count, orchestration sub-score and score distribution"""
    breakdown = {}
    for category in CATEGORIES:
        members = [entry for entry in entries if entry.category == category]
        count = len(members)
        scores = [entry.orchestration_eval.score for entry in members]

        def share(level: int) -> float:
            return 100 * scores.count(level) / count if count else 0.0

        breakdown[category] = {
            "count": count,
            "sub_score": round_half_up(sum(scores) / count, 1) if count else 0.0,
            "excellent_pct": share(2),
            "acceptable_pct": share(1),
            "fail_pct": share(0),
        }
    return breakdown


def overview(entries: List[EvaluationEntry], pass_threshold: float = 1.5) -> Dict[str, Any]:
    """Macro statistics for one task's entries"""
    summary = summarize(entries, pass_threshold)
    return {
        "total": summary.total,
        "avg_score": summary.avg_score,
        "pass_rate": summary.pass_rate,
        "passed": sum(1 for entry in entries if entry.mean_score >= pass_threshold),
        "critical": sum(1 for entry in entries if entry.mean_score < CRITICAL_THRESHOLD),
        "errors": sum(1 for entry in entries if entry.category == ERROR_CATEGORY),
        "dimensions": dimension_averages(entries),
        "categories": category_breakdown(entries),
    }
