"""EPDS score engine — pure validation, summation and risk classification.

No I/O happens here, so the same answers always produce the same result
and a validation failure is raised before any remote call is attempted.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from epds_screening.constants import (
    ANSWER_MAX,
    ANSWER_MIN,
    HIGH_RISK_TOTAL,
    QUESTION_FIELDS,
    SELF_HARM_FIELD,
    SELF_HARM_THRESHOLD,
)
from epds_screening.errors import InvalidInputError
from epds_screening.models.result import RiskLevel, ScoreResult

# Optional sign followed by ASCII digits; surrounding whitespace is rejected.
_INTEGER_RE = re.compile(r"([+-]?)([0-9]+)", re.ASCII)

# Significant digits beyond this cannot be in range; int() is not attempted.
_MAX_SIGNIFICANT_DIGITS = 9


def parse_answer(field: str, raw: Any) -> int:
    """Validate one raw answer (form string or int) and return its value."""
    if raw is None or raw == "":
        raise InvalidInputError(f"Invalid input: {field} is required", field=field)

    if isinstance(raw, bool):
        raise InvalidInputError(f"Invalid input: {field} must be an integer", field=field)
    match = _INTEGER_RE.fullmatch(raw) if isinstance(raw, str) else None
    if isinstance(raw, int):
        value = raw
    elif match is not None:
        sign, digits = match.groups()
        digits = digits.lstrip("0") or "0"
        if len(digits) > _MAX_SIGNIFICANT_DIGITS:
            raise _out_of_range(field)
        value = int(sign + digits)
    else:
        raise InvalidInputError(f"Invalid input: {field} must be an integer", field=field)

    if not ANSWER_MIN <= value <= ANSWER_MAX:
        raise _out_of_range(field)
    return value


def _out_of_range(field: str) -> InvalidInputError:
    return InvalidInputError(
        f"Invalid input: {field} score must be between {ANSWER_MIN} and {ANSWER_MAX}",
        field=field,
    )


def validate_answers(raw: Mapping[str, Any]) -> tuple[int, ...]:
    """Read ``q1`` .. ``q10`` from *raw*; the first bad field is reported."""
    return tuple(parse_answer(field, raw.get(field)) for field in QUESTION_FIELDS)


def classify(answers: Sequence[int]) -> ScoreResult:
    """Sum validated answers and classify risk.

    High risk when the total reaches ``HIGH_RISK_TOTAL`` or the self-harm
    item (q10) is endorsed at all.
    """
    total = sum(answers)
    q10 = answers[QUESTION_FIELDS.index(SELF_HARM_FIELD)]
    high = total >= HIGH_RISK_TOTAL or q10 >= SELF_HARM_THRESHOLD
    return ScoreResult(total=total, q10=q10, risk=RiskLevel.HIGH if high else RiskLevel.LOW)


def score_answers(raw: Mapping[str, Any]) -> ScoreResult:
    """Validate then classify raw answers in one call."""
    return classify(validate_answers(raw))
