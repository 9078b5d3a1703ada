from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.results import ReportCardSummary, ScoreResult
from app.models.statistics import CohortStatistics, StudentStatistics
from app.services.grading import GradingScale, REPORT_CARD_SCALE, grade_remark as remark_for_grade
from app.services.ranking import format_position


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Raw entry as typed into a form; values are validated by the normalizer
class RawScoreEntry(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    student_id: Optional[Any] = None
    subject_id: Optional[Any] = None
    class_id: Optional[Any] = None
    academic_year: Optional[Any] = None
    term: Optional[Any] = None
    ca1: Optional[Any] = None
    ca2: Optional[Any] = None
    exam_score: Optional[Any] = None
    ltc: Optional[Any] = None
    remark: Optional[Any] = None

    def to_raw(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ComputeRequest(RawScoreEntry):
    scale: Optional[str] = None


class CohortRequest(CamelModel):
    class_id: Optional[Any] = None
    subject_id: Optional[Any] = None
    academic_year: Optional[Any] = None
    term: Optional[Any] = None
    results: List[RawScoreEntry] = Field(default_factory=list)
    roster: Optional[List[int]] = None
    scale: Optional[str] = None
    pass_mark: Optional[float] = None

    def defaults(self) -> Dict[str, Any]:
        return self.model_dump(
            by_alias=True,
            exclude_none=True,
            include={"class_id", "subject_id", "academic_year", "term"},
        )


class BulkResultsRequest(CamelModel):
    class_id: Any
    subject_id: Any
    academic_year: Any
    term: Any
    results: List[RawScoreEntry]
    scale: Optional[str] = None

    def defaults(self) -> Dict[str, Any]:
        return self.model_dump(
            by_alias=True,
            include={"class_id", "subject_id", "academic_year", "term"},
        )


# Result row as returned to views, with display helpers filled in
class RankedResult(ScoreResult):
    position_label: Optional[str] = None
    grade_remark: Optional[str] = None

    @classmethod
    def from_result(cls, result: ScoreResult, scale: GradingScale = REPORT_CARD_SCALE) -> "RankedResult":
        return cls(
            **result.model_dump(include=set(ScoreResult.model_fields)),
            position_label=format_position(result.subject_position),
            grade_remark=remark_for_grade(result.grade, scale),
        )


class CohortResponse(CamelModel):
    class_id: Optional[int] = None
    subject_id: Optional[int] = None
    academic_year: Optional[str] = None
    term: Optional[str] = None
    results: List[RankedResult]
    statistics: CohortStatistics


# Raw entry for a report card; cohort figures come from an earlier class ranking
class ReportCardEntry(RawScoreEntry):
    subject_position: Optional[int] = Field(None, ge=1)
    class_average: Optional[float] = Field(None, ge=0, le=100)


class ReportCardRequest(CamelModel):
    student_id: int
    academic_year: str
    term: str
    results: List[ReportCardEntry] = Field(default_factory=list)
    scale: Optional[str] = None
    pass_mark: Optional[float] = None

    def defaults(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, include={"student_id", "academic_year", "term"})


class ReportCardResponse(ReportCardSummary):
    results: List[RankedResult] = Field(default_factory=list)
    class_position_label: Optional[str] = None
    overall_remark: Optional[str] = None
    statistics: StudentStatistics = Field(default_factory=StudentStatistics)

    @classmethod
    def from_summary(
        cls,
        summary: ReportCardSummary,
        statistics: StudentStatistics,
        scale: GradingScale = REPORT_CARD_SCALE,
    ) -> "ReportCardResponse":
        data = summary.model_dump(exclude={"results"})
        return cls(
            **data,
            results=[RankedResult.from_result(result, scale) for result in summary.results],
            class_position_label=format_position(summary.class_position),
            overall_remark=remark_for_grade(summary.overall_grade, scale),
            statistics=statistics,
        )


class RankReportCardsRequest(CamelModel):
    report_cards: List[ReportCardSummary]


class ClassifyRequest(CamelModel):
    score: Optional[float] = Field(None, ge=0, le=100)
    scale: Optional[str] = None


class ClassifyResponse(CamelModel):
    score: Optional[float] = None
    scale: str
    grade: Optional[str] = None
    remark: Optional[str] = None


class GradeBand(CamelModel):
    grade: str
    min: float
    max: Optional[float] = None


class GradingScaleOut(CamelModel):
    name: str
    bands: List[GradeBand]
