import httpx
import logging
from typing import Any, Dict, List, Optional, Sequence

from app.config import settings
from app.models.results import CohortKey, ScoreInput, Term
from app.services.errors import BatchValidationError, ResultsBackendError, ValidationError
from app.services.normalizer import normalize_batch, normalize_score_input

logger = logging.getLogger(__name__)

# Fields sent for each row of a bulk submission
BULK_ROW_FIELDS = ("studentId", "ca1", "ca2", "examScore", "ltc", "remark")


def _unwrap(payload: Any, *keys: str) -> Any:
    """Backend responses are either bare or wrapped as {"data": ...}."""
    if isinstance(payload, dict):
        for key in ("data",) + keys:
            if key in payload:
                return _unwrap(payload[key], *keys)
    return payload


class ResultsClient:
    """
    Thin client for the REST backend that stores score entries.

    All rows read from the backend are validated with the same rules as user
    input before they reach the engine.
    """
    def __init__(self, http_client: httpx.AsyncClient):
        self._http = http_client

    @classmethod
    def create(
        cls,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ResultsClient":
        headers = {"Content-Type": "application/json"}
        token = token if token is not None else settings.RESULTS_API_TOKEN
        if token:
            headers["Authorization"] = f"Bearer {token}"

        http_client = httpx.AsyncClient(
            base_url=base_url or settings.RESULTS_API_BASE_URL,
            headers=headers,
            timeout=timeout or settings.RESULTS_API_TIMEOUT,
            transport=transport,
        )
        return cls(http_client)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"Error contacting results backend: {method} {path}: {str(e)}")
            raise ResultsBackendError(f"Results service connection error: {str(e)}")

        if response.is_error:
            logger.error(
                f"Results backend request failed: {method} {path} "
                f"[status: {response.status_code}] {response.text[:500]}"
            )
            try:
                message = response.json().get("message", response.reason_phrase)
            except (ValueError, AttributeError):
                message = response.reason_phrase
            raise ResultsBackendError(f"Results service error: {message}", status_code=response.status_code)

        if not response.content:
            return None
        return response.json()

    def _parse_rows(self, payload: Any, defaults: Dict[str, Any]) -> List[ScoreInput]:
        rows = _unwrap(payload, "results", "grades")
        if not isinstance(rows, list):
            raise ResultsBackendError("Results service returned an unexpected payload")
        try:
            return normalize_batch(rows, defaults)
        except BatchValidationError as e:
            logger.error(f"Results backend returned invalid rows: {e.to_list()}")
            raise ResultsBackendError(f"Results service returned invalid rows: {str(e)}")

    async def fetch_cohort(self, key: CohortKey) -> List[ScoreInput]:
        """Entries for one subject, class, academic year and term."""
        params = {
            "classId": key.class_id,
            "subjectId": key.subject_id,
            "academicYear": key.academic_year,
            "term": key.term.value,
        }
        payload = await self._request("GET", "/grades", params=params)
        return self._parse_rows(payload, params)

    async def fetch_student_results(self, student_id: int, academic_year: str, term: Term) -> List[ScoreInput]:
        """All of one student's entries for a term, across subjects."""
        params = {
            "studentId": student_id,
            "academicYear": academic_year,
            "term": term.value,
        }
        payload = await self._request("GET", "/grades", params=params)
        return self._parse_rows(payload, params)

    async def fetch_roster(self, class_id: int) -> List[int]:
        """IDs of the students enrolled in a class."""
        payload = await self._request("GET", f"/students/{class_id}/class")
        students = _unwrap(payload, "students")
        if not isinstance(students, list):
            raise ResultsBackendError("Results service returned an unexpected roster payload")
        return [student["id"] if isinstance(student, dict) else int(student) for student in students]

    async def upsert(self, entry: ScoreInput) -> ScoreInput:
        """Create or update one entry; returns the stored entry."""
        payload = await self._request("POST", "/grades", json=entry.model_dump(by_alias=True, mode="json"))
        stored = _unwrap(payload, "result", "grade")
        if not isinstance(stored, dict):
            return entry
        try:
            return normalize_score_input({**entry.model_dump(by_alias=True, mode="json"), **stored})
        except ValidationError as e:
            raise ResultsBackendError(f"Results service returned an invalid row: {e.message}")

    async def bulk_upsert(self, key: CohortKey, entries: Sequence[ScoreInput]) -> None:
        """Submit every entry of one cohort in a single request."""
        rows = []
        for entry in entries:
            if entry.cohort_key != key:
                raise ValueError(f"Entry for student {entry.student_id} does not belong to cohort {tuple(key)}")
            data = entry.model_dump(by_alias=True, mode="json")
            rows.append({field: data[field] for field in BULK_ROW_FIELDS})

        await self._request("POST", "/grades/bulk", json={
            "classId": key.class_id,
            "subjectId": key.subject_id,
            "academicYear": key.academic_year,
            "term": key.term.value,
            "results": rows,
        })
        logger.info(f"Submitted {len(rows)} result(s) for cohort {tuple(key)}")
