"""
Letter-grade scales.

Two scales are in use and are kept apart: the five-band
report-card scale and the eight-band quick-grade scale. Callers name the one
they want.
"""
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class GradingScale(BaseModel):
    """
    A named list of (lower_bound, letter) bands, highest first.

    Lower bounds are inclusive; anything below the last band gets
    `fail_grade`.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    bands: Tuple[Tuple[float, str], ...]
    fail_grade: str = "F"

    def classify(self, score: Optional[float]) -> Optional[str]:
        if score is None:
            return None
        for lower_bound, letter in self.bands:
            if score >= lower_bound:
                return letter
        return self.fail_grade

    def letters(self) -> List[str]:
        return [letter for _, letter in self.bands] + [self.fail_grade]

    def describe(self) -> List[Dict[str, object]]:
        """Bands as plain records, e.g. for display in a grading key."""
        described = []
        upper = None
        for lower_bound, letter in self.bands:
            described.append({"grade": letter, "min": lower_bound, "max": upper})
            upper = lower_bound
        described.append({"grade": self.fail_grade, "min": 0, "max": upper})
        return described


REPORT_CARD_SCALE = GradingScale(
    name="report_card",
    bands=((80, "A"), (65, "B"), (50, "C"), (40, "D")),
)

QUICK_GRADE_SCALE = GradingScale(
    name="quick_grade",
    bands=(
        (90, "A+"), (80, "A"), (70, "B+"), (60, "B"),
        (50, "C+"), (40, "C"), (30, "D"),
    ),
)

SCALES: Dict[str, GradingScale] = {
    REPORT_CARD_SCALE.name: REPORT_CARD_SCALE,
    QUICK_GRADE_SCALE.name: QUICK_GRADE_SCALE,
}

# Remarks printed next to report-card grades
GRADE_REMARKS: Dict[str, str] = {
    "A": "Excellent",
    "B": "Very Good",
    "C": "Good",
    "D": "Weak Pass",
    "F": "Fail",
}

UNGRADED_REMARK = "Not Graded"


def get_scale(name: str) -> GradingScale:
    try:
        return SCALES[name]
    except KeyError:
        raise ValueError(f"Unknown grading scale: {name}")


def classify(score: Optional[float], scale: GradingScale = REPORT_CARD_SCALE) -> Optional[str]:
    """Map an overall score to a letter grade; None stays None (ungraded)."""
    return scale.classify(score)


def grade_remark(grade: Optional[str], scale: GradingScale = REPORT_CARD_SCALE) -> Optional[str]:
    """Report-card remark for a grade; other scales have no remarks."""
    if grade is None:
        return UNGRADED_REMARK
    if scale.name != REPORT_CARD_SCALE.name:
        return None
    return GRADE_REMARKS.get(grade)
