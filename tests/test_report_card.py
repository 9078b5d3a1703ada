import pytest

from app.models.results import Term
from app.services.aggregator import compute_result
from app.services.errors import InconsistentCohortError
from app.services.report_card import assemble_report_card, rank_report_cards


def subject_result(make_input, subject_id, exam, ca=None, **kwargs):
    return compute_result(make_input(subject_id=subject_id, exam_score=exam, ca1=ca, **kwargs))


def test_totals_across_subjects(make_input):
    results = [
        subject_result(make_input, 10, 60, ca=20),
        subject_result(make_input, 11, 50, ca=10),
        subject_result(make_input, 12, 50, ca=20),
    ]
    summary = assemble_report_card(1, "2024/2025", "FIRST", results)

    assert summary.number_of_subjects == 3
    assert summary.marks_obtainable == 300
    assert summary.total_marks_obtained == 210
    assert summary.average == 70
    assert summary.overall_grade == "B"
    assert not summary.is_empty


def test_empty_report_card_is_not_an_error():
    summary = assemble_report_card(1, "2024/2025", Term.FIRST, [])

    assert summary.is_empty
    assert summary.number_of_subjects == 0
    assert summary.marks_obtainable == 0
    assert summary.total_marks_obtained == 0
    assert summary.average == 0
    assert summary.overall_grade is None
    assert summary.results == []


def test_only_the_requested_student_and_term_are_used(make_input):
    results = [
        subject_result(make_input, 10, 40),
        subject_result(make_input, 10, 60, student_id=2),
        subject_result(make_input, 10, 60, term=Term.SECOND),
        subject_result(make_input, 10, 60, academic_year="2023/2024"),
    ]
    summary = assemble_report_card(1, "2024-2025", "first", results)

    assert summary.academic_year == "2024/2025"
    assert summary.term == Term.FIRST
    assert summary.number_of_subjects == 1
    assert summary.total_marks_obtained == 40


def test_ungraded_subject_counts_as_zero_marks(make_input):
    results = [subject_result(make_input, 10, 60, ca=20), compute_result(make_input(subject_id=11))]
    summary = assemble_report_card(1, "2024/2025", "FIRST", results)

    assert summary.number_of_subjects == 2
    assert summary.marks_obtainable == 200
    assert summary.total_marks_obtained == 80
    assert summary.average == 40


def test_duplicate_subject_is_rejected(make_input):
    results = [subject_result(make_input, 10, 40), subject_result(make_input, 10, 50)]
    with pytest.raises(InconsistentCohortError):
        assemble_report_card(1, "2024/2025", "FIRST", results)


def test_report_cards_are_ranked_by_average(make_input):
    cards = [
        assemble_report_card(sid, "2024/2025", "FIRST", [subject_result(make_input, 10, exam, student_id=sid)])
        for sid, exam in [(1, 40), (2, 55), (3, 55)]
    ]
    cards.append(assemble_report_card(4, "2024/2025", "FIRST", []))

    ranked = rank_report_cards(cards)
    assert [(c.student_id, c.class_position) for c in ranked] == [(2, 1), (3, 1), (1, 3), (4, None)]


def test_report_cards_from_different_terms_cannot_be_ranked_together():
    cards = [
        assemble_report_card(1, "2024/2025", "FIRST", []),
        assemble_report_card(2, "2024/2025", "SECOND", []),
    ]
    with pytest.raises(InconsistentCohortError):
        rank_report_cards(cards)
