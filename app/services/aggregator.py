from typing import NamedTuple, Optional

from app.models.results import ScoreInput, ScoreResult
from app.services.grading import GradingScale, REPORT_CARD_SCALE


class ScoreTotals(NamedTuple):
    ca_total: Optional[float]
    total_score: Optional[float]
    overall_score: Optional[float]


def _sum_present(*values: Optional[float]) -> Optional[float]:
    """Sum the values that were entered; None if none were."""
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present)


def aggregate(score_input: ScoreInput) -> ScoreTotals:
    """
    Combine the score components of one entry.

    caTotal is CA1 + CA2, totalScore adds the exam score, and overallScore
    averages the total with LTC when LTC was entered. A missing component
    counts as zero only when something else in the same sum was entered;
    otherwise the sum is None.
    """
    ca_total = _sum_present(score_input.ca1, score_input.ca2)
    total_score = _sum_present(ca_total, score_input.exam_score)

    if score_input.ltc is not None:
        overall_score = ((total_score or 0) + score_input.ltc) / 2
    else:
        overall_score = total_score

    return ScoreTotals(ca_total, total_score, overall_score)


def compute_result(score_input: ScoreInput, scale: GradingScale = REPORT_CARD_SCALE) -> ScoreResult:
    """Aggregate and grade one entry. Cohort fields are left unset."""
    totals = aggregate(score_input)
    return ScoreResult(
        **score_input.model_dump(include=set(ScoreInput.model_fields)),
        ca_total=totals.ca_total,
        total_score=totals.total_score,
        overall_score=totals.overall_score,
        grade=scale.classify(totals.overall_score),
    )
