"""Submission models — the validated form of one questionnaire post.

``Submission`` is built by :func:`epds_screening.intake.parse_submission`
and is immutable afterwards.  Identity fields are optional individually,
but a parsed submission always carries a patient id or an identifier pair.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from epds_screening.constants import ANSWER_MAX, ANSWER_MIN, QUESTION_COUNT

Answer = Annotated[int, Field(ge=ANSWER_MIN, le=ANSWER_MAX)]


class IdentifierPair(BaseModel):
    """Business identifier used to look a Patient up (e.g. an MRN)."""

    model_config = ConfigDict(frozen=True)

    system: str
    value: str


class Submission(BaseModel):
    """One validated EPDS submission."""

    model_config = ConfigDict(frozen=True)

    patient_id: str | None = None
    identifier: IdentifierPair | None = None
    encounter_id: str | None = None
    appointment_id: str | None = None
    answers: tuple[Answer, ...] = Field(min_length=QUESTION_COUNT, max_length=QUESTION_COUNT)

    def describe_patient(self) -> str:
        """Patient id, or ``system|value`` when only the identifier is known."""
        if self.patient_id:
            return self.patient_id
        if self.identifier is not None:
            return f"{self.identifier.system}|{self.identifier.value}"
        return "unknown"
