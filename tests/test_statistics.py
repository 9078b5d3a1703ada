import pytest

from app.services.aggregator import compute_result
from app.services.statistics import cohort_statistics, student_statistics


def exam_result(make_input, student_id, exam, subject_id=10):
    return compute_result(make_input(student_id=student_id, subject_id=subject_id, exam_score=exam))


def test_cohort_statistics(make_input):
    results = [exam_result(make_input, sid, score) for sid, score in [(1, 20), (2, 40), (3, 50), (4, 60)]]
    results.append(compute_result(make_input(student_id=5)))

    stats = cohort_statistics(results)

    assert stats.total_students == 5
    assert stats.students_with_results == 4
    assert stats.average_score == 42.5
    assert stats.highest_score == 60
    assert stats.lowest_score == 20
    assert stats.median_score == 45
    assert stats.standard_deviation == pytest.approx(14.7902, abs=1e-4)
    assert stats.pass_rate == 50
    assert [p.student_id for p in stats.top_performers] == [4]
    assert stats.grade_distribution == {"F": 1, "D": 1, "C": 2, "Ungraded": 1}


def test_pass_mark_is_configurable(make_input):
    results = [exam_result(make_input, sid, score) for sid, score in [(1, 45), (2, 55), (3, 60)]]
    assert cohort_statistics(results, pass_mark=60).pass_rate == pytest.approx(100 / 3)
    assert cohort_statistics(results, pass_mark=40).pass_rate == 100


def test_score_ranges(make_input):
    results = [exam_result(make_input, sid, score) for sid, score in enumerate([59.5, 60, 60, 59], start=1)]
    results += [
        compute_result(make_input(student_id=10, ca1=20, ca2=20, exam_score=60)),
        compute_result(make_input(student_id=11, ca1=15, ca2=15, exam_score=55)),
    ]
    ranges = {r.range: r.count for r in cohort_statistics(results).score_ranges}
    assert ranges == {"90-100": 1, "80-89": 1, "70-79": 0, "60-69": 2, "0-59": 2}


def test_tied_top_performers(make_input):
    results = [exam_result(make_input, sid, score) for sid, score in [(1, 50), (2, 50), (3, 30)]]
    assert [p.student_id for p in cohort_statistics(results).top_performers] == [1, 2]


def test_no_results_leaves_figures_empty(make_input):
    stats = cohort_statistics([compute_result(make_input(student_id=1))])

    assert stats.total_students == 1
    assert stats.students_with_results == 0
    assert stats.average_score is None
    assert stats.standard_deviation is None
    assert stats.pass_rate is None
    assert stats.top_performers == []
    assert stats.grade_distribution == {"Ungraded": 1}


def test_student_statistics(make_input):
    results = [
        exam_result(make_input, 1, 60, subject_id=10),
        exam_result(make_input, 1, 30, subject_id=11),
        compute_result(make_input(student_id=1, subject_id=12)),
    ]
    stats = student_statistics(results)

    assert stats.total_subjects == 3
    assert stats.graded_subjects == 2
    assert stats.average_score == 45
    assert stats.highest_score == 60
    assert stats.lowest_score == 30
    assert stats.pass_rate == 50
