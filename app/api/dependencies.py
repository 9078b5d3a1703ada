from fastapi import HTTPException, Request, status

from app.config import settings
from app.services.cache import CohortCache
from app.services.grading import GradingScale, get_scale
from app.services.results_client import ResultsClient


# Dependency to get the backend client created at startup
def get_results_client(request: Request) -> ResultsClient:
    return request.app.state.results_client


# Dependency to get the cohort cache owned by the app
def get_cohort_cache(request: Request) -> CohortCache:
    return request.app.state.cohort_cache


def resolve_scale(name: str = None) -> GradingScale:
    """Look up a grading scale by name, defaulting to the configured one."""
    try:
        return get_scale(name or settings.DEFAULT_GRADING_SCALE)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


def resolve_pass_mark(pass_mark: float = None) -> float:
    return settings.PASS_MARK if pass_mark is None else pass_mark
