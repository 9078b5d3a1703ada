"""
Pipeline from validated entries to ranked results.

Entries are aggregated and graded one by one, then ranked once per cohort.
"""
from typing import Dict, Iterable, List, Optional, Sequence

from app.models.results import CohortKey, ScoreInput, ScoreKey, ScoreResult
from app.services.aggregator import compute_result
from app.services.grading import GradingScale, REPORT_CARD_SCALE
from app.services.ranking import rank_cohort, with_roster


def merge_upserts(existing: Sequence[ScoreInput], incoming: Sequence[ScoreInput]) -> List[ScoreInput]:
    """
    Apply incoming entries on top of existing ones, keyed by
    (student, subject, academic year, term). Later entries win; each key
    keeps the position where it first appeared.
    """
    merged: Dict[ScoreKey, ScoreInput] = {}
    for entry in list(existing) + list(incoming):
        merged[entry.key] = entry
    return list(merged.values())


def compute_cohort(
    inputs: Sequence[ScoreInput],
    roster: Optional[Iterable[int]] = None,
    cohort_key: Optional[CohortKey] = None,
    scale: GradingScale = REPORT_CARD_SCALE,
) -> List[ScoreResult]:
    """
    Grade and rank one cohort.

    When a roster is given, students on it without an entry are added as
    ungraded placeholders; `cohort_key` is then required if `inputs` may be
    empty.
    """
    results = [compute_result(entry, scale) for entry in inputs]

    if roster is not None:
        if cohort_key is None:
            if not inputs:
                raise ValueError("cohort_key is required to build placeholders for an empty cohort")
            cohort_key = inputs[0].cohort_key
        results = with_roster(results, roster, cohort_key)

    return rank_cohort(results)


def compute_cohorts(
    inputs: Sequence[ScoreInput],
    scale: GradingScale = REPORT_CARD_SCALE,
) -> Dict[CohortKey, List[ScoreResult]]:
    """Split entries into cohorts and rank each one once."""
    grouped: Dict[CohortKey, List[ScoreInput]] = {}
    for entry in inputs:
        grouped.setdefault(entry.cohort_key, []).append(entry)
    return {key: compute_cohort(entries, scale=scale) for key, entries in grouped.items()}
