import pytest

from app.models.results import CohortKey, Term
from app.services.grading import QUICK_GRADE_SCALE
from app.services.results import compute_cohort, compute_cohorts, merge_upserts


def test_upsert_replaces_entry_in_place(make_input):
    existing = [make_input(student_id=1, exam_score=30), make_input(student_id=2, exam_score=40)]
    merged = merge_upserts(existing, [make_input(student_id=1, exam_score=55), make_input(student_id=3)])

    assert [(m.student_id, m.exam_score) for m in merged] == [(1, 55), (2, 40), (3, None)]


def test_upsert_keys_include_term(make_input):
    merged = merge_upserts([make_input(exam_score=30)], [make_input(exam_score=50, term=Term.SECOND)])
    assert len(merged) == 2


def test_compute_cohort_ranks_after_upsert(make_input):
    existing = [make_input(student_id=1, exam_score=30), make_input(student_id=2, exam_score=40)]
    results = compute_cohort(merge_upserts(existing, [make_input(student_id=1, exam_score=50)]))

    assert [(r.student_id, r.subject_position) for r in results] == [(1, 1), (2, 2)]
    assert results[0].class_average == 45


def test_compute_cohort_adds_roster_placeholders(make_input):
    results = compute_cohort([make_input(student_id=2, exam_score=40)], roster=[1, 2])

    assert [(r.student_id, r.subject_position) for r in results] == [(2, 1), (1, None)]
    assert results[1].grade is None


def test_empty_cohort_with_roster_needs_a_key():
    with pytest.raises(ValueError):
        compute_cohort([], roster=[1, 2])

    key = CohortKey(subject_id=10, class_id=100, academic_year="2024/2025", term=Term.FIRST)
    results = compute_cohort([], roster=[1, 2], cohort_key=key)
    assert [r.student_id for r in results] == [1, 2]
    assert all(r.class_average is None for r in results)


def test_compute_cohort_uses_the_given_scale(make_input):
    results = compute_cohort([make_input(exam_score=55, ca1=20)], scale=QUICK_GRADE_SCALE)
    assert results[0].grade == "B+"


def test_compute_cohorts_ranks_each_subject_separately(make_input):
    inputs = [
        make_input(student_id=1, subject_id=10, exam_score=30),
        make_input(student_id=1, subject_id=11, exam_score=20),
        make_input(student_id=2, subject_id=10, exam_score=50),
        make_input(student_id=2, subject_id=11, exam_score=10),
    ]
    cohorts = compute_cohorts(inputs)

    assert len(cohorts) == 2
    maths = cohorts[inputs[0].cohort_key]
    english = cohorts[inputs[1].cohort_key]
    assert [(r.student_id, r.subject_position) for r in maths] == [(2, 1), (1, 2)]
    assert [(r.student_id, r.subject_position) for r in english] == [(1, 1), (2, 2)]
    assert maths[0].class_average == 40
    assert english[0].class_average == 15
