"""Form intake — turn the raw form fields into a :class:`Submission`.

Text fields are whitespace-trimmed and empty values count as absent.  When
``patientId`` is given the identifier pair is ignored; otherwise both
identifier fields are required.  All checks run before any remote call.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from epds_screening.errors import InvalidInputError
from epds_screening.models.submission import IdentifierPair, Submission
from epds_screening.scoring import validate_answers

# --- Form field names ---
PATIENT_ID = "patientId"
IDENTIFIER_SYSTEM = "patientIdentifierSystem"
IDENTIFIER_VALUE = "patientIdentifierValue"
ENCOUNTER_ID = "encounterId"
APPOINTMENT_ID = "appointmentId"

MISSING_PATIENT_MESSAGE = (
    "provide patientId OR patientIdentifierSystem+patientIdentifierValue"
)


def _text(form: Mapping[str, Any], key: str) -> str | None:
    value = form.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_submission(form: Mapping[str, Any]) -> Submission:
    """Validate answers first, then identity fields."""
    answers = validate_answers(form)

    patient_id = _text(form, PATIENT_ID)
    identifier = None
    if patient_id is None:
        system = _text(form, IDENTIFIER_SYSTEM)
        value = _text(form, IDENTIFIER_VALUE)
        if system is None or value is None:
            raise InvalidInputError(MISSING_PATIENT_MESSAGE, field=PATIENT_ID)
        identifier = IdentifierPair(system=system, value=value)

    return Submission(
        patient_id=patient_id,
        identifier=identifier,
        encounter_id=_text(form, ENCOUNTER_ID),
        appointment_id=_text(form, APPOINTMENT_ID),
        answers=answers,
    )
