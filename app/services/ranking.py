"""
Subject ranking within a class.

A cohort is every result for one subject in one class, academic year and
term. Positions use standard competition ranking: equal scores share a
position and the next distinct score skips ahead (1, 2, 2, 4).
"""
import logging
from typing import Iterable, List, Optional, Sequence

from app.models.results import CohortKey, ScoreResult
from app.services.errors import InconsistentCohortError

logger = logging.getLogger(__name__)


def competition_rank(scores: Sequence[Optional[float]]) -> List[Optional[int]]:
    """
    Rank scores highest first, aligned with the input order.

    None scores get no position.
    """
    ranked = sorted(
        (score for score in scores if score is not None), reverse=True
    )
    first_position = {}
    for index, score in enumerate(ranked, start=1):
        first_position.setdefault(score, index)
    return [None if score is None else first_position[score] for score in scores]


def mean(values: Iterable[Optional[float]]) -> Optional[float]:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)


def cohort_key_of(entries: Sequence[ScoreResult]) -> Optional[CohortKey]:
    """
    Return the single cohort shared by all entries (None when empty).

    Raises:
        InconsistentCohortError: if entries span several cohorts or a
            student appears more than once
    """
    if not entries:
        return None

    keys = {entry.cohort_key for entry in entries}
    if len(keys) > 1:
        raise InconsistentCohortError(
            f"Cannot rank entries from {len(keys)} different cohorts together: "
            f"{sorted(tuple(k) for k in keys)}"
        )

    seen = set()
    for entry in entries:
        if entry.student_id in seen:
            raise InconsistentCohortError(
                f"Student {entry.student_id} appears more than once in the cohort"
            )
        seen.add(entry.student_id)

    return keys.pop()


def rank_cohort(entries: Sequence[ScoreResult]) -> List[ScoreResult]:
    """
    Fill in subject_position and class_average for one cohort.

    Ungraded entries (no overall score) are kept but get no position and do
    not count towards the average. The returned list is ordered by position;
    ties and ungraded entries keep their input order, ungraded last.
    """
    cohort_key_of(entries)

    positions = competition_rank([entry.overall_score for entry in entries])
    class_average = mean(entry.overall_score for entry in entries)

    ranked = [
        entry.model_copy(update={"subject_position": position, "class_average": class_average})
        for entry, position in zip(entries, positions)
    ]
    ranked.sort(key=lambda e: (e.subject_position is None, e.subject_position or 0))
    return ranked


def placeholder_result(student_id: int, cohort_key: CohortKey) -> ScoreResult:
    """An ungraded row for a student who has no entry yet."""
    return ScoreResult(
        student_id=student_id,
        subject_id=cohort_key.subject_id,
        class_id=cohort_key.class_id,
        academic_year=cohort_key.academic_year,
        term=cohort_key.term,
    )


def with_roster(
    entries: Sequence[ScoreResult],
    roster: Iterable[int],
    cohort_key: CohortKey,
) -> List[ScoreResult]:
    """Append placeholder rows for roster students missing from the cohort."""
    present = {entry.student_id for entry in entries}
    completed = list(entries)
    for student_id in roster:
        if student_id not in present:
            completed.append(placeholder_result(student_id, cohort_key))
            present.add(student_id)

    added = len(completed) - len(entries)
    if added:
        logger.debug(f"Added {added} placeholder result(s) for cohort {tuple(cohort_key)}")
    return completed


def ordinal_suffix(number: int) -> str:
    if number % 10 == 1 and number % 100 != 11:
        return "st"
    if number % 10 == 2 and number % 100 != 12:
        return "nd"
    if number % 10 == 3 and number % 100 != 13:
        return "rd"
    return "th"


def format_position(position: Optional[int]) -> Optional[str]:
    """1 -> "1st", 12 -> "12th"; None stays None."""
    if position is None:
        return None
    return f"{position}{ordinal_suffix(position)}"
