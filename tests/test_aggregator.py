from app.services.aggregator import aggregate, compute_result
from app.services.grading import QUICK_GRADE_SCALE


def test_no_components_gives_no_scores(make_input):
    totals = aggregate(make_input())
    assert totals.ca_total is None
    assert totals.total_score is None
    assert totals.overall_score is None

    result = compute_result(make_input())
    assert result.grade is None
    assert not result.is_graded


def test_without_ltc_overall_equals_total(make_input):
    result = compute_result(make_input(ca1=18, ca2=16, exam_score=50, ltc=None))
    assert result.ca_total == 34
    assert result.total_score == 84
    assert result.overall_score == 84
    assert result.grade == "A"


def test_ltc_is_averaged_with_total(make_input):
    result = compute_result(make_input(ca1=10, ca2=10, exam_score=30, ltc=60))
    assert result.ca_total == 20
    assert result.total_score == 50
    assert result.overall_score == 55
    assert result.grade == "C"


def test_single_ca_component_counts_other_as_zero(make_input):
    totals = aggregate(make_input(ca2=12))
    assert totals.ca_total == 12
    assert totals.total_score == 12


def test_exam_only_has_no_ca_total(make_input):
    totals = aggregate(make_input(exam_score=45))
    assert totals.ca_total is None
    assert totals.total_score == 45
    assert totals.overall_score == 45


def test_ltc_only_is_halved(make_input):
    totals = aggregate(make_input(ltc=70))
    assert totals.total_score is None
    assert totals.overall_score == 35


def test_zero_scores_are_graded(make_input):
    result = compute_result(make_input(ca1=0, ca2=0, exam_score=0))
    assert result.overall_score == 0
    assert result.grade == "F"


def test_aggregation_is_repeatable(make_input):
    entry = make_input(ca1=7.5, ca2=12, exam_score=41, ltc=66)
    assert aggregate(entry) == aggregate(entry)
    assert compute_result(entry) == compute_result(entry)


def test_result_keeps_input_fields(make_input):
    entry = make_input(student_id=4, ca1=5, remark="Needs improvement")
    result = compute_result(entry)
    assert result.student_id == 4
    assert result.remark == "Needs improvement"
    assert result.subject_position is None
    assert result.class_average is None


def test_scale_is_selectable(make_input):
    result = compute_result(make_input(ca1=20, ca2=20, exam_score=52), QUICK_GRADE_SCALE)
    assert result.grade == "A+"
