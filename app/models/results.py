from enum import Enum
from typing import List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Academic term
class Term(str, Enum):
    FIRST = "FIRST"
    SECOND = "SECOND"
    THIRD = "THIRD"


# Identifies the set of students ranked against each other for one subject
class CohortKey(NamedTuple):
    subject_id: int
    class_id: int
    academic_year: str
    term: Term


# Identifies a single upsertable score row
class ScoreKey(NamedTuple):
    student_id: int
    subject_id: int
    academic_year: str
    term: Term


class ResultRecord(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# Validated score entry for one student, subject and term
class ScoreInput(ResultRecord):
    student_id: int
    subject_id: int
    class_id: int
    academic_year: str
    term: Term
    ca1: Optional[float] = None
    ca2: Optional[float] = None
    exam_score: Optional[float] = None
    ltc: Optional[float] = None
    remark: Optional[str] = None

    @property
    def key(self) -> ScoreKey:
        return ScoreKey(self.student_id, self.subject_id, self.academic_year, self.term)

    @property
    def cohort_key(self) -> CohortKey:
        return CohortKey(self.subject_id, self.class_id, self.academic_year, self.term)


# Computed result; subject_position and class_average depend on the whole cohort
class ScoreResult(ScoreInput):
    ca_total: Optional[float] = None
    total_score: Optional[float] = None
    overall_score: Optional[float] = None
    grade: Optional[str] = None
    class_average: Optional[float] = None
    subject_position: Optional[int] = None

    @property
    def is_graded(self) -> bool:
        return self.overall_score is not None


# Per-student, per-term summary across subjects
class ReportCardSummary(ResultRecord):
    student_id: int
    academic_year: str
    term: Term
    results: List[ScoreResult] = Field(default_factory=list)
    number_of_subjects: int = 0
    marks_obtainable: float = 0
    total_marks_obtained: float = 0
    average: float = 0
    overall_grade: Optional[str] = None
    class_position: Optional[int] = None
    is_empty: bool = True
