from typing import Dict, List, Optional


class ResultsEngineError(Exception):
    """Base class for errors raised by the results engine."""


class ValidationError(ResultsEngineError, ValueError):
    """
    A supplied score field is non-numeric or outside its allowed range.

    Attributes:
        field: Name of the offending field (camelCase, as entered)
        bound: The violated bound, e.g. ">= 0" or "<= 20", if any
    """
    def __init__(self, field: str, message: str, bound: Optional[str] = None):
        super().__init__(message)
        self.field = field
        self.bound = bound
        self.message = message

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"field": self.field, "bound": self.bound, "message": self.message}


class BatchValidationError(ResultsEngineError, ValueError):
    """One or more rows of a batch failed validation; nothing was accepted."""
    def __init__(self, errors: Dict[int, List[ValidationError]]):
        self.errors = errors
        count = sum(len(e) for e in errors.values())
        super().__init__(f"{count} validation error(s) in {len(errors)} row(s)")

    def to_list(self) -> List[dict]:
        return [
            {"row": row, **error.to_dict()}
            for row, row_errors in sorted(self.errors.items())
            for error in row_errors
        ]


class EmptyCohortError(ResultsEngineError):
    """
    No results matched a report-card request.

    The assembler does not raise this; it returns an empty summary instead.
    Callers that want a hard failure can raise it themselves.
    """


class InconsistentCohortError(ResultsEngineError):
    """Entries passed for ranking do not belong to a single cohort."""


class ResultsBackendError(ResultsEngineError):
    """The results backend could not be reached or rejected a request."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
