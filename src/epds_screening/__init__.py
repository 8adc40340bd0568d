"""epds_screening — EPDS scoring and result-recording SDK.

Public API:
    SubmissionWorkflow — per-submission orchestrator (score, resolve, write)
    EncounterCascade   — ordered encounter discovery strategies
    EncounterStrategy  — ABC for a single discovery strategy
    parse_submission   — form fields → validated Submission
    score_answers      — raw answers → ScoreResult (pure)

Errors:
    SubmissionError and its subclasses carry the HTTP status class and a
    client-safe message for each terminal failure.
"""

from epds_screening.errors import (
    AuthFailureError,
    InvalidInputError,
    PatientNotFoundError,
    SubmissionError,
    UpstreamFailureError,
)
from epds_screening.interfaces import EncounterStrategy
from epds_screening.intake import parse_submission
from epds_screening.models import (
    IdentifierPair,
    ResolvedContext,
    RiskLevel,
    ScoreResult,
    SideWriteOutcome,
    Submission,
    SubmissionReceipt,
)
from epds_screening.resolution import (
    ActivePatientEncounter,
    AppointmentEncounter,
    CascadeOutcome,
    EncounterCascade,
    ExplicitEncounter,
)
from epds_screening.scoring import classify, score_answers
from epds_screening.workflow import SubmissionWorkflow

__all__ = [
    # Workflow
    "SubmissionWorkflow",
    "parse_submission",
    "score_answers",
    "classify",
    # Cascade
    "EncounterStrategy",
    "EncounterCascade",
    "CascadeOutcome",
    "ExplicitEncounter",
    "AppointmentEncounter",
    "ActivePatientEncounter",
    # Models
    "IdentifierPair",
    "ResolvedContext",
    "RiskLevel",
    "ScoreResult",
    "SideWriteOutcome",
    "Submission",
    "SubmissionReceipt",
    # Errors
    "SubmissionError",
    "InvalidInputError",
    "PatientNotFoundError",
    "AuthFailureError",
    "UpstreamFailureError",
]
