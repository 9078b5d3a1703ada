"""
Validation of raw score entries.

Raw rows arrive from forms and from the results backend with values that may
be numbers, numeric strings, blanks or garbage. Everything is checked here so
that the aggregator can trust its input.
"""
import logging
import math
import re
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from app.models.results import ScoreInput, Term
from app.services.errors import BatchValidationError, ValidationError

logger = logging.getLogger(__name__)

# Allowed (inclusive) range of each score component
SCORE_RANGES: Dict[str, Tuple[float, float]] = {
    "ca1": (0, 20),
    "ca2": (0, 20),
    "examScore": (0, 60),
    "ltc": (0, 100),
}

ACADEMIC_YEAR_PATTERN = re.compile(r"^(\d{4})\s*[/-]\s*(\d{4})$")
IDENTIFIER_PATTERN = re.compile(r"\d+", re.ASCII)

_SNAKE_NAMES = {
    "studentId": "student_id",
    "subjectId": "subject_id",
    "classId": "class_id",
    "academicYear": "academic_year",
    "examScore": "exam_score",
}


def _lookup(raw: Mapping[str, Any], field: str) -> Any:
    """Read a field by its camelCase name, falling back to snake_case."""
    if field in raw:
        return raw[field]
    return raw.get(_SNAKE_NAMES.get(field, field))


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_score(field: str, value: Any) -> Optional[float]:
    """
    Parse one score component.

    Returns None when the value was not supplied. Raises ValidationError when
    the value is not numeric or lies outside the field's range.
    """
    if _is_blank(value):
        return None

    if isinstance(value, bool):
        raise ValidationError(field, f"{field} must be numeric")

    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise ValidationError(field, f"{field} must be numeric")
    elif isinstance(value, (int, float, Decimal)):
        try:
            number = float(value)
        except OverflowError:
            raise ValidationError(field, f"{field} must be numeric")
    else:
        raise ValidationError(field, f"{field} must be numeric")

    if not math.isfinite(number):
        raise ValidationError(field, f"{field} must be numeric")

    low, high = SCORE_RANGES[field]
    if number < low:
        raise ValidationError(field, f"{field} must be at least {low:g}", bound=f">= {low:g}")
    if number > high:
        raise ValidationError(field, f"{field} must not exceed {high:g}", bound=f"<= {high:g}")

    return number


def parse_identifier(field: str, value: Any) -> int:
    if _is_blank(value):
        raise ValidationError(field, f"{field} is required")

    if isinstance(value, bool):
        raise ValidationError(field, f"{field} must be an integer")

    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and IDENTIFIER_PATTERN.fullmatch(value.strip()):
        try:
            number = int(value.strip())
        except ValueError:
            raise ValidationError(field, f"{field} must be an integer")
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    else:
        raise ValidationError(field, f"{field} must be an integer")

    if number <= 0:
        raise ValidationError(field, f"{field} must be a positive integer", bound="> 0")
    return number


def normalize_academic_year(value: Any) -> str:
    """Accept YYYY/YYYY or YYYY-YYYY and return the canonical YYYY/YYYY form."""
    if _is_blank(value):
        raise ValidationError("academicYear", "academicYear is required")

    match = ACADEMIC_YEAR_PATTERN.match(str(value).strip())
    if not match:
        raise ValidationError(
            "academicYear", "academicYear must look like YYYY/YYYY or YYYY-YYYY"
        )
    return f"{match.group(1)}/{match.group(2)}"


def normalize_term(value: Any) -> Term:
    if isinstance(value, Term):
        return value
    if _is_blank(value):
        raise ValidationError("term", "term is required")
    try:
        return Term(str(value).strip().upper())
    except ValueError:
        raise ValidationError("term", "term must be one of FIRST, SECOND, THIRD")


def _normalize_remark(value: Any) -> Optional[str]:
    if _is_blank(value):
        return None
    return str(value).strip()


def collect_errors(raw: Mapping[str, Any]) -> Tuple[Dict[str, Any], List[ValidationError]]:
    """
    Validate every field of a raw row.

    Returns the parsed values (keyed by ScoreInput attribute name) and the
    list of errors found, so batch callers can report all of them at once.
    """
    values: Dict[str, Any] = {}
    errors: List[ValidationError] = []

    parsers = [
        ("studentId", parse_identifier),
        ("subjectId", parse_identifier),
        ("classId", parse_identifier),
    ]
    for field, parser in parsers:
        try:
            values[_SNAKE_NAMES[field]] = parser(field, _lookup(raw, field))
        except ValidationError as e:
            errors.append(e)

    try:
        values["academic_year"] = normalize_academic_year(_lookup(raw, "academicYear"))
    except ValidationError as e:
        errors.append(e)

    try:
        values["term"] = normalize_term(_lookup(raw, "term"))
    except ValidationError as e:
        errors.append(e)

    for field in SCORE_RANGES:
        try:
            values[_SNAKE_NAMES.get(field, field)] = parse_score(field, _lookup(raw, field))
        except ValidationError as e:
            errors.append(e)

    values["remark"] = _normalize_remark(_lookup(raw, "remark"))
    return values, errors


def normalize_score_input(raw: Mapping[str, Any]) -> ScoreInput:
    """
    Turn a raw row into a ScoreInput.

    Raises:
        ValidationError: for the first invalid field found
    """
    values, errors = collect_errors(raw)
    if errors:
        raise errors[0]
    return ScoreInput(**values)


def normalize_batch(
    rows: Iterable[Mapping[str, Any]],
    defaults: Optional[Mapping[str, Any]] = None,
) -> List[ScoreInput]:
    """
    Validate a batch of raw rows as a whole.

    Fields in `defaults` (typically classId, subjectId, academicYear and term
    for a bulk class submission) apply to every row that does not set them.

    Raises:
        BatchValidationError: if any row is invalid; no rows are returned
    """
    defaults = dict(defaults or {})
    inputs: List[ScoreInput] = []
    failures: Dict[int, List[ValidationError]] = {}

    for index, row in enumerate(rows):
        merged = {**defaults, **{k: v for k, v in row.items() if v is not None}}
        values, errors = collect_errors(merged)
        if errors:
            failures[index] = errors
            continue
        inputs.append(ScoreInput(**values))

    if failures:
        logger.info(f"Rejected score batch: {len(failures)} invalid row(s)")
        raise BatchValidationError(failures)

    return inputs
