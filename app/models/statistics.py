from typing import Dict, List, Optional

from pydantic import Field

from app.models.results import ResultRecord


class ScoreRangeCount(ResultRecord):
    range: str
    count: int


class TopPerformer(ResultRecord):
    student_id: int
    score: float


# Summary figures for one subject cohort
class CohortStatistics(ResultRecord):
    total_students: int = 0
    students_with_results: int = 0
    average_score: Optional[float] = None
    highest_score: Optional[float] = None
    lowest_score: Optional[float] = None
    median_score: Optional[float] = None
    standard_deviation: Optional[float] = None
    pass_mark: float = 50
    pass_rate: Optional[float] = None
    top_performers: List[TopPerformer] = Field(default_factory=list)
    grade_distribution: Dict[str, int] = Field(default_factory=dict)
    score_ranges: List[ScoreRangeCount] = Field(default_factory=list)


# Summary figures across one student's subjects
class StudentStatistics(ResultRecord):
    total_subjects: int = 0
    graded_subjects: int = 0
    average_score: Optional[float] = None
    highest_score: Optional[float] = None
    lowest_score: Optional[float] = None
    pass_mark: float = 50
    pass_rate: Optional[float] = None
