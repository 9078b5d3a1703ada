import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from app.api.dependencies import get_cohort_cache, get_results_client, resolve_pass_mark, resolve_scale
from app.models.results import CohortKey, ReportCardSummary, ScoreInput, ScoreResult
from app.schemas.results import (
    BulkResultsRequest, CohortRequest, CohortResponse, ComputeRequest, RankedResult,
    RankReportCardsRequest, RawScoreEntry, ReportCardRequest, ReportCardResponse
)
from app.services.aggregator import compute_result
from app.services.cache import CohortCache
from app.services.errors import (
    BatchValidationError, InconsistentCohortError, ResultsBackendError, ValidationError
)
from app.services.grading import GradingScale
from app.services.normalizer import (
    normalize_academic_year, normalize_batch, normalize_score_input, normalize_term, parse_identifier
)
from app.services.ranking import cohort_key_of
from app.services.report_card import assemble_report_card, rank_report_cards
from app.services.results import compute_cohort, merge_upserts
from app.services.results_client import ResultsClient
from app.services.statistics import cohort_statistics, student_statistics

logger = logging.getLogger(__name__)

router = APIRouter()


def _validation_exception(error: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=error.to_dict()
    )


def _batch_validation_exception(error: BatchValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={"message": str(error), "errors": error.to_list()}
    )


def _backend_exception(error: ResultsBackendError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=str(error)
    )


def _cohort_key(class_id, subject_id, academic_year, term) -> CohortKey:
    """Validate the four parts of a cohort key; raises ValidationError."""
    return CohortKey(
        subject_id=parse_identifier("subjectId", subject_id),
        class_id=parse_identifier("classId", class_id),
        academic_year=normalize_academic_year(academic_year),
        term=normalize_term(term),
    )


def _cohort_response(
    key: Optional[CohortKey],
    results: List[ScoreResult],
    scale: GradingScale,
    pass_mark: float,
) -> CohortResponse:
    return CohortResponse(
        class_id=key.class_id if key else None,
        subject_id=key.subject_id if key else None,
        academic_year=key.academic_year if key else None,
        term=key.term.value if key else None,
        results=[RankedResult.from_result(result, scale) for result in results],
        statistics=cohort_statistics(results, pass_mark),
    )


async def _load_cohort(
    key: CohortKey,
    client: ResultsClient,
    cache: CohortCache,
    refresh: bool = False,
) -> List[ScoreInput]:
    """Cohort entries from the cache, or from the backend on a miss."""
    if not refresh:
        cached = cache.get(key)
        if cached is not None:
            return cached

    inputs = await client.fetch_cohort(key)
    cache.set(key, inputs)
    return inputs


async def _ranked_cohort(
    key: CohortKey,
    client: ResultsClient,
    cache: CohortCache,
    scale: GradingScale,
    include_roster: bool = True,
    refresh: bool = False,
) -> List[ScoreResult]:
    inputs = await _load_cohort(key, client, cache, refresh=refresh)
    roster = await client.fetch_roster(key.class_id) if include_roster else None
    try:
        return compute_cohort(inputs, roster=roster, cohort_key=key, scale=scale)
    except InconsistentCohortError as e:
        logger.error(f"Backend returned an inconsistent cohort for {tuple(key)}: {str(e)}")
        raise ResultsBackendError(f"Results service returned an inconsistent cohort: {str(e)}")


@router.post("/results/compute", response_model=RankedResult)
async def compute_single_result(request: ComputeRequest):
    """
    Validate one raw entry and compute its totals and grade.

    Position and class average need the whole cohort and are left empty.
    """
    scale = resolve_scale(request.scale)

    try:
        entry = normalize_score_input(request.to_raw())
    except ValidationError as e:
        raise _validation_exception(e)

    return RankedResult.from_result(compute_result(entry, scale), scale)


@router.post("/results/cohort", response_model=CohortResponse)
async def rank_posted_cohort(request: CohortRequest):
    """
    Grade and rank a cohort supplied in the request body.

    Cohort fields given at the top level apply to every entry. Entries for
    the same student replace earlier ones. If a roster is given, students
    without an entry are listed as ungraded.
    """
    scale = resolve_scale(request.scale)
    pass_mark = resolve_pass_mark(request.pass_mark)
    defaults = request.defaults()

    try:
        inputs = normalize_batch([entry.to_raw() for entry in request.results], defaults)
    except BatchValidationError as e:
        raise _batch_validation_exception(e)

    inputs = merge_upserts([], inputs)

    key = None
    if len(defaults) == 4:
        try:
            key = _cohort_key(defaults["classId"], defaults["subjectId"], defaults["academicYear"], defaults["term"])
        except ValidationError as e:
            raise _validation_exception(e)

    if request.roster is not None and key is None and not inputs:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="classId, subjectId, academicYear and term are required to list a roster without results"
        )

    try:
        results = compute_cohort(inputs, roster=request.roster, cohort_key=key, scale=scale)
        key = cohort_key_of(results) or key
    except InconsistentCohortError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    return _cohort_response(key, results, scale, pass_mark)


@router.get("/results/class/{class_id}", response_model=CohortResponse)
async def get_class_subject_results(
    class_id: int = Path(..., gt=0),
    subject_id: int = Query(..., alias="subjectId", gt=0),
    academic_year: str = Query(..., alias="academicYear"),
    term: str = Query(...),
    include_roster: bool = Query(True, alias="includeRoster"),
    refresh: bool = Query(False),
    scale: Optional[str] = Query(None),
    pass_mark: Optional[float] = Query(None, alias="passMark"),
    client: ResultsClient = Depends(get_results_client),
    cache: CohortCache = Depends(get_cohort_cache),
):
    """
    Ranked results of one class for one subject and term, with statistics.
    """
    grading_scale = resolve_scale(scale)

    try:
        key = _cohort_key(class_id, subject_id, academic_year, term)
    except ValidationError as e:
        raise _validation_exception(e)

    try:
        results = await _ranked_cohort(
            key, client, cache, grading_scale, include_roster=include_roster, refresh=refresh
        )
    except ResultsBackendError as e:
        raise _backend_exception(e)

    return _cohort_response(key, results, grading_scale, resolve_pass_mark(pass_mark))


@router.put("/results", response_model=CohortResponse)
async def upsert_result(
    entry: RawScoreEntry,
    scale: Optional[str] = Query(None),
    client: ResultsClient = Depends(get_results_client),
    cache: CohortCache = Depends(get_cohort_cache),
):
    """
    Create or update one student's entry and return the re-ranked cohort.
    """
    grading_scale = resolve_scale(scale)

    try:
        score_input = normalize_score_input(entry.to_raw())
    except ValidationError as e:
        raise _validation_exception(e)

    key = score_input.cohort_key
    try:
        await client.upsert(score_input)
        cache.invalidate(key)
        results = await _ranked_cohort(key, client, cache, grading_scale)
    except ResultsBackendError as e:
        raise _backend_exception(e)

    logger.info(
        f"Saved result for student {score_input.student_id}, subject {score_input.subject_id} "
        f"({score_input.academic_year} {score_input.term.value} term)"
    )
    return _cohort_response(key, results, grading_scale, resolve_pass_mark(None))


@router.post("/results/bulk", response_model=CohortResponse)
async def bulk_upsert_results(
    request: BulkResultsRequest,
    client: ResultsClient = Depends(get_results_client),
    cache: CohortCache = Depends(get_cohort_cache),
):
    """
    Save a whole class's entries for one subject and term.

    Every entry is validated before anything is sent; one bad entry rejects
    the batch. Ranks are recomputed once, after the batch is saved.
    """
    grading_scale = resolve_scale(request.scale)

    if not request.results:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No results provided"
        )

    try:
        key = _cohort_key(request.class_id, request.subject_id, request.academic_year, request.term)
    except ValidationError as e:
        raise _validation_exception(e)

    try:
        inputs = normalize_batch([entry.to_raw() for entry in request.results], request.defaults())
    except BatchValidationError as e:
        raise _batch_validation_exception(e)

    if any(entry.cohort_key != key for entry in inputs):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="All results in a batch must be for the same class, subject, academic year and term"
        )

    inputs = merge_upserts([], inputs)

    try:
        await client.bulk_upsert(key, inputs)
        cache.invalidate(key)
        results = await _ranked_cohort(key, client, cache, grading_scale)
    except ResultsBackendError as e:
        raise _backend_exception(e)

    return _cohort_response(key, results, grading_scale, resolve_pass_mark(None))


@router.post("/results/report-card", response_model=ReportCardResponse)
async def build_report_card(request: ReportCardRequest):
    """
    Assemble a report card from raw entries supplied in the request body.

    Entries are validated and graded here; posted totals are never trusted.
    Student, academic year and term default to the report card's own.
    """
    scale = resolve_scale(request.scale)

    try:
        inputs = normalize_batch([entry.to_raw() for entry in request.results], request.defaults())
    except BatchValidationError as e:
        raise _batch_validation_exception(e)

    results = [
        compute_result(score_input, scale).model_copy(update={
            "subject_position": entry.subject_position,
            "class_average": entry.class_average,
        })
        for score_input, entry in zip(inputs, request.results)
    ]

    try:
        summary = assemble_report_card(
            request.student_id, request.academic_year, request.term, results, scale
        )
    except ValidationError as e:
        raise _validation_exception(e)
    except InconsistentCohortError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    statistics = student_statistics(summary.results, resolve_pass_mark(request.pass_mark))
    return ReportCardResponse.from_summary(summary, statistics, scale)


@router.get("/results/report-card/student/{student_id}", response_model=ReportCardResponse)
async def get_student_report_card(
    student_id: int = Path(..., gt=0),
    academic_year: str = Query(..., alias="academicYear"),
    term: str = Query(...),
    scale: Optional[str] = Query(None),
    pass_mark: Optional[float] = Query(None, alias="passMark"),
    client: ResultsClient = Depends(get_results_client),
    cache: CohortCache = Depends(get_cohort_cache),
):
    """
    Generate a student's report card for a term.

    Each subject is ranked against the rest of the student's class before
    the report card is assembled.
    """
    grading_scale = resolve_scale(scale)

    try:
        academic_year = normalize_academic_year(academic_year)
        term_value = normalize_term(term)
    except ValidationError as e:
        raise _validation_exception(e)

    try:
        entries = await client.fetch_student_results(student_id, academic_year, term_value)

        results: List[ScoreResult] = []
        for entry in merge_upserts([], entries):
            cohort_inputs = await _load_cohort(entry.cohort_key, client, cache)
            cohort_inputs = merge_upserts(cohort_inputs, [entry])
            ranked = compute_cohort(cohort_inputs, scale=grading_scale)
            results.extend(result for result in ranked if result.student_id == student_id)
    except ResultsBackendError as e:
        raise _backend_exception(e)
    except InconsistentCohortError as e:
        raise _backend_exception(ResultsBackendError(str(e)))

    summary = assemble_report_card(student_id, academic_year, term_value, results, grading_scale)
    statistics = student_statistics(summary.results, resolve_pass_mark(pass_mark))
    return ReportCardResponse.from_summary(summary, statistics, grading_scale)


@router.post("/results/report-cards/rank", response_model=List[ReportCardSummary])
async def rank_class_report_cards(request: RankReportCardsRequest):
    """
    Assign class positions to a set of report cards by overall average.
    """
    try:
        return rank_report_cards(request.report_cards)
    except InconsistentCohortError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
