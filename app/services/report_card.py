import logging
from typing import Any, List, Sequence

from app.models.results import ReportCardSummary, ScoreResult
from app.services.errors import InconsistentCohortError
from app.services.grading import GradingScale, REPORT_CARD_SCALE
from app.services.normalizer import normalize_academic_year, normalize_term
from app.services.ranking import competition_rank

logger = logging.getLogger(__name__)

# Every subject is marked out of 100
MARKS_PER_SUBJECT = 100


def assemble_report_card(
    student_id: int,
    academic_year: str,
    term: Any,
    results: Sequence[ScoreResult],
    scale: GradingScale = REPORT_CARD_SCALE,
) -> ReportCardSummary:
    """
    Build a student's report card for one academic year and term.

    Results for other students or terms are ignored. When nothing matches,
    an empty summary (is_empty=True, all totals zero) is returned rather
    than an error, so report views can show "no results for this term".

    Raises:
        InconsistentCohortError: if a subject appears more than once
    """
    academic_year = normalize_academic_year(academic_year)
    term = normalize_term(term)

    matching = [
        result for result in results
        if result.student_id == student_id
        and result.academic_year == academic_year
        and result.term == term
    ]

    subjects = set()
    for result in matching:
        if result.subject_id in subjects:
            raise InconsistentCohortError(
                f"Subject {result.subject_id} appears more than once on the report card "
                f"of student {student_id}"
            )
        subjects.add(result.subject_id)

    if not matching:
        logger.info(f"No results for student {student_id} in {academic_year} {term.value} term")
        return ReportCardSummary(student_id=student_id, academic_year=academic_year, term=term)

    number_of_subjects = len(matching)
    total_marks_obtained = sum(result.overall_score or 0 for result in matching)
    average = total_marks_obtained / number_of_subjects

    return ReportCardSummary(
        student_id=student_id,
        academic_year=academic_year,
        term=term,
        results=matching,
        number_of_subjects=number_of_subjects,
        marks_obtainable=number_of_subjects * MARKS_PER_SUBJECT,
        total_marks_obtained=total_marks_obtained,
        average=average,
        overall_grade=scale.classify(average),
        is_empty=False,
    )


def rank_report_cards(summaries: Sequence[ReportCardSummary]) -> List[ReportCardSummary]:
    """
    Assign class positions across students' report cards by average.

    Empty report cards get no position. The result is ordered by position,
    unranked cards last.

    Raises:
        InconsistentCohortError: if the cards are not all for the same term
    """
    periods = {(summary.academic_year, summary.term) for summary in summaries}
    if len(periods) > 1:
        raise InconsistentCohortError("Report cards must all be for the same academic year and term")

    positions = competition_rank(
        [None if summary.is_empty else summary.average for summary in summaries]
    )
    ranked = [
        summary.model_copy(update={"class_position": position})
        for summary, position in zip(summaries, positions)
    ]
    ranked.sort(key=lambda s: (s.class_position is None, s.class_position or 0))
    return ranked
