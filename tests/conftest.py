import json
from typing import Any, Dict, List

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_cohort_cache, get_results_client
from app.main import app
from app.models.results import ScoreInput, Term
from app.services.cache import CohortCache
from app.services.results_client import ResultsClient

FILTER_FIELDS = ("classId", "subjectId", "studentId", "academicYear", "term")


class FakeResultsBackend:
    """In-memory stand-in for the REST backend that stores grades."""

    def __init__(self):
        self.rows: List[Dict[str, Any]] = []
        self.rosters: Dict[int, List[int]] = {}
        self.requests: List[httpx.Request] = []
        self.fail_with: int = None

    def add(self, **row):
        row.setdefault("academicYear", "2024/2025")
        row.setdefault("term", "FIRST")
        self._upsert(row)

    def _upsert(self, row):
        key = (row["studentId"], row["subjectId"], row["academicYear"], row["term"])
        for index, existing in enumerate(self.rows):
            if (existing["studentId"], existing["subjectId"], existing["academicYear"], existing["term"]) == key:
                self.rows[index] = {**existing, **row}
                return self.rows[index]
        self.rows.append(dict(row))
        return row

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with:
            return httpx.Response(self.fail_with, json={"success": False, "message": "Backend unavailable"})

        path = request.url.path
        if request.method == "GET" and path == "/grades":
            params = request.url.params
            matching = [
                row for row in self.rows
                if all(str(row.get(f)) == params[f] for f in FILTER_FIELDS if f in params)
            ]
            return httpx.Response(200, json={"success": True, "data": matching})

        if request.method == "GET" and path.startswith("/students/") and path.endswith("/class"):
            class_id = int(path.split("/")[2])
            students = [{"id": sid} for sid in self.rosters.get(class_id, [])]
            return httpx.Response(200, json={"students": students})

        if request.method == "POST" and path == "/grades":
            row = self._upsert(json.loads(request.content))
            return httpx.Response(200, json={"success": True, "data": row})

        if request.method == "POST" and path == "/grades/bulk":
            body = json.loads(request.content)
            shared = {f: body[f] for f in ("classId", "subjectId", "academicYear", "term")}
            for row in body["results"]:
                self._upsert({**shared, **row})
            return httpx.Response(200, json={"success": True, "message": "Results saved"})

        return httpx.Response(404, json={"message": "Not found"})

    def paths(self, method: str) -> List[str]:
        return [r.url.path for r in self.requests if r.method == method]


@pytest.fixture
def backend():
    return FakeResultsBackend()


@pytest.fixture
def results_client(backend):
    return ResultsClient.create(
        base_url="http://backend.test",
        token="service-token",
        transport=httpx.MockTransport(backend.handler),
    )


@pytest.fixture
def cohort_cache():
    return CohortCache(ttl=60)


@pytest.fixture
def api(results_client, cohort_cache):
    app.dependency_overrides[get_results_client] = lambda: results_client
    app.dependency_overrides[get_cohort_cache] = lambda: cohort_cache
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_input():
    def _make(student_id=1, subject_id=10, class_id=100, academic_year="2024/2025",
              term=Term.FIRST, **scores) -> ScoreInput:
        return ScoreInput(
            student_id=student_id,
            subject_id=subject_id,
            class_id=class_id,
            academic_year=academic_year,
            term=term,
            **scores,
        )
    return _make
