"""SubmissionWorkflow — orchestrates one EPDS submission end to end.

Steps run strictly in order; steps 1-5 abort the submission on failure,
step 7 never does:

    1. parse & validate form ─► 2. score ─► 3. token ─► 4. patient id
          │                                                   │
          ▼                                                   ▼
    InvalidInputError                        5. create Observation (fatal)
                                                              │
                                     low risk ◄───────────────┤
                                                              ▼ high risk
                              7. encounter cascade ─► Flag ─► Communication
                                 (all best-effort, logged only)

The caller only ever sees the Observation id and the total.  An
Observation, once written, is never rolled back.

Usage::

    workflow = SubmissionWorkflow(
        token_cache, patients, encounters, writer,
        alert_provider_ref="Practitioner/123",
    )
    receipt = await workflow.submit({"patientId": "p1", "q1": "3", ...})
    # receipt.observation_id, receipt.total
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Mapping
from typing import Any

from epds_fhir.auth import TokenCache
from epds_fhir.errors import FHIRError, MalformedResourceError, ResourceNotFoundError
from epds_fhir.search import EncounterResolver, PatientResolver
from epds_fhir.writer import RecordWriter

from epds_screening.errors import (
    AuthFailureError,
    PatientNotFoundError,
    UpstreamFailureError,
)
from epds_screening.intake import parse_submission
from epds_screening.models.result import (
    ResolvedContext,
    ScoreResult,
    SideWriteOutcome,
    SubmissionReceipt,
)
from epds_screening.models.submission import Submission
from epds_screening.resolution import EncounterCascade
from epds_screening.scoring import classify

logger = logging.getLogger(__name__)


class SubmissionWorkflow:
    """Runs the score-and-record sequence for one submission at a time.

    Instances are stateless apart from the shared :class:`TokenCache`, so
    one workflow serves every concurrent request.

    Args:
        token_cache: process-wide credential cache.
        patients: identifier → Patient id resolver.
        encounters: encounter lookups used by the default cascade.
        writer: Observation / Flag / Communication writer.
        alert_provider_ref: recipient reference for high-risk alerts.
        cascade: optional custom strategy order; defaults to
            explicit → appointment → active-for-patient.
    """

    def __init__(
        self,
        token_cache: TokenCache,
        patients: PatientResolver,
        encounters: EncounterResolver,
        writer: RecordWriter,
        *,
        alert_provider_ref: str,
        cascade: EncounterCascade | None = None,
    ) -> None:
        self._tokens = token_cache
        self._patients = patients
        self._writer = writer
        self._alert_provider_ref = alert_provider_ref
        self._cascade = cascade or EncounterCascade.default(encounters)

    async def submit(self, form: Mapping[str, Any]) -> SubmissionReceipt:
        """Process a raw form submission.

        Raises :class:`~epds_screening.errors.SubmissionError` subclasses
        for the terminal failures of steps 1-5.
        """
        # --- 1-2. Validate and score (no I/O) ---
        submission = parse_submission(form)
        score = classify(submission.answers)
        logger.info(
            "Calculated EPDS score (patient: %s): Total=%d, Q10=%d, risk=%s",
            submission.describe_patient(), score.total, score.q10, score.risk.value,
        )

        # --- 3. Credential ---
        try:
            token = await self._tokens.get_token()
        except FHIRError as exc:
            logger.error("Failed to get Oystehr token: %s", exc)
            raise AuthFailureError() from exc

        # --- 4. Patient ---
        patient_id = await self._resolve_patient(submission, token)

        # --- 5. Observation (the contract with the caller) ---
        try:
            observation_id = await self._writer.create_observation(patient_id, score.total, token)
        except FHIRError as exc:
            logger.error("Failed to create FHIR Observation for patient %s: %s", patient_id, exc)
            raise UpstreamFailureError() from exc

        # --- 6-7. Escalate high risk ---
        if score.is_high_risk:
            await self._escalate(submission, patient_id, score, token)

        logger.info(
            "Processed EPDS submission for Patient %s. Observation ID: %s",
            patient_id, observation_id,
        )
        return SubmissionReceipt(observation_id=observation_id, total=score.total)

    # ==================================================================
    # Steps
    # ==================================================================

    async def _resolve_patient(self, submission: Submission, token: str) -> str:
        if submission.patient_id:
            return submission.patient_id

        identifier = submission.identifier
        try:
            return await self._patients.resolve_by_identifier(
                identifier.system, identifier.value, token,
            )
        except (ResourceNotFoundError, MalformedResourceError) as exc:
            logger.error(
                "Patient lookup failed for %s|%s: %s", identifier.system, identifier.value, exc,
            )
            raise PatientNotFoundError() from exc
        except FHIRError as exc:
            logger.error(
                "Patient search errored for %s|%s: %s", identifier.system, identifier.value, exc,
            )
            raise UpstreamFailureError("patient lookup failed") from exc

    async def _escalate(
        self, submission: Submission, patient_id: str, score: ScoreResult, token: str,
    ) -> list[SideWriteOutcome]:
        """Find the encounter, then write Flag and Communication independently."""
        logger.info(
            "High risk detected for Patient %s (Score: %d, Q10: %d). "
            "Attempting to create Flag and Communication.",
            patient_id, score.total, score.q10,
        )
        outcome = await self._cascade.resolve(submission, patient_id, token)
        context = ResolvedContext(patient_id=patient_id, encounter_id=outcome.encounter_id)

        outcomes = [
            await _best_effort(
                "Flag",
                self._writer.create_flag(
                    context.patient_id, context.encounter_id, score.total, score.q10, token,
                ),
            ),
            await _best_effort(
                "Communication",
                self._writer.create_communication(
                    context.patient_id, self._alert_provider_ref, score.total, score.q10, token,
                ),
            ),
        ]
        failed = [o.operation for o in outcomes if not o.ok]
        logger.info(
            "Escalation for patient %s: encounter=%s (via %s), failed=%s",
            patient_id, context.encounter_id or "none", outcome.source or "none",
            ", ".join(failed) or "none",
        )
        return outcomes


async def _best_effort(operation: str, call: Awaitable[str]) -> SideWriteOutcome:
    """Await *call*; a FHIR failure is logged and captured, never raised."""
    try:
        resource_id = await call
    except FHIRError as exc:
        status = getattr(exc, "status_code", None)
        body = getattr(exc, "body", "")
        logger.error(
            "Failed to create FHIR %s: %s (status=%s, body=%s)",
            operation, exc, status, body,
        )
        return SideWriteOutcome(operation=operation, error=str(exc))
    return SideWriteOutcome(operation=operation, resource_id=resource_id)
