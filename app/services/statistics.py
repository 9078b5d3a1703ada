"""
Derived statistics for result views.

Only entered scores count: ungraded rows appear in totals and in the
"Ungraded" bucket of the grade distribution but never as zeros in averages,
extremes or pass rates.
"""
from collections import Counter
from typing import List, Optional, Sequence, Tuple

import numpy as np

from app.models.results import ScoreResult
from app.models.statistics import CohortStatistics, ScoreRangeCount, StudentStatistics, TopPerformer

DEFAULT_PASS_MARK = 50.0

UNGRADED = "Ungraded"

# (label, inclusive lower bound, exclusive upper bound); the top band includes 100
SCORE_BANDS: Tuple[Tuple[str, float, float], ...] = (
    ("90-100", 90, float("inf")),
    ("80-89", 80, 90),
    ("70-79", 70, 80),
    ("60-69", 60, 70),
    ("0-59", float("-inf"), 60),
)


def _graded_scores(results: Sequence[ScoreResult]) -> List[float]:
    return [result.overall_score for result in results if result.overall_score is not None]


def _pass_rate(scores: Sequence[float], pass_mark: float) -> Optional[float]:
    if not scores:
        return None
    passed = sum(1 for score in scores if score >= pass_mark)
    return passed / len(scores) * 100


def grade_distribution(results: Sequence[ScoreResult]) -> dict:
    """Count results per letter grade; ungraded rows are counted as "Ungraded"."""
    return dict(Counter(result.grade or UNGRADED for result in results))


def score_ranges(scores: Sequence[float]) -> List[ScoreRangeCount]:
    return [
        ScoreRangeCount(
            range=label,
            count=sum(1 for score in scores if low <= score < high),
        )
        for label, low, high in SCORE_BANDS
    ]


def top_performers(results: Sequence[ScoreResult]) -> List[TopPerformer]:
    """Every student holding the highest score (more than one on a tie)."""
    scores = _graded_scores(results)
    if not scores:
        return []
    best = max(scores)
    return [
        TopPerformer(student_id=result.student_id, score=result.overall_score)
        for result in results
        if result.overall_score == best
    ]


def cohort_statistics(
    results: Sequence[ScoreResult],
    pass_mark: float = DEFAULT_PASS_MARK,
) -> CohortStatistics:
    """Summary figures for one subject cohort (or any list of results)."""
    scores = _graded_scores(results)
    stats = CohortStatistics(
        total_students=len(results),
        students_with_results=len(scores),
        pass_mark=pass_mark,
        grade_distribution=grade_distribution(results),
        score_ranges=score_ranges(scores),
    )
    if not scores:
        return stats

    values = np.asarray(scores, dtype=float)
    return stats.model_copy(update={
        "average_score": float(np.mean(values)),
        "highest_score": float(np.max(values)),
        "lowest_score": float(np.min(values)),
        "median_score": float(np.median(values)),
        "standard_deviation": float(np.std(values)),
        "pass_rate": _pass_rate(scores, pass_mark),
        "top_performers": top_performers(results),
    })


def student_statistics(
    results: Sequence[ScoreResult],
    pass_mark: float = DEFAULT_PASS_MARK,
) -> StudentStatistics:
    """Summary figures across one student's subjects."""
    scores = _graded_scores(results)
    stats = StudentStatistics(
        total_subjects=len({result.subject_id for result in results}),
        graded_subjects=len(scores),
        pass_mark=pass_mark,
    )
    if not scores:
        return stats

    return stats.model_copy(update={
        "average_score": sum(scores) / len(scores),
        "highest_score": max(scores),
        "lowest_score": min(scores),
        "pass_rate": _pass_rate(scores, pass_mark),
    })
