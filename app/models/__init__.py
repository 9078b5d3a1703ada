# Re-export the result records so callers can import them from one place
from app.models.results import (
    Term, CohortKey, ScoreKey, ScoreInput, ScoreResult, ReportCardSummary
)
from app.models.statistics import (
    CohortStatistics, StudentStatistics, ScoreRangeCount, TopPerformer
)
