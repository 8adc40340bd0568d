"""RecordWriter — builds and POSTs the EPDS result resources.

Three writes, each returning the id the store assigned:

  - ``create_observation``: the EPDS total (always written)
  - ``create_flag``: high-risk banner, linked to an Encounter when known
  - ``create_communication``: alert addressed to the on-call provider

The writer does not decide which writes are fatal; it raises
:class:`~epds_fhir.errors.FHIRError` on every failure and leaves the policy
to the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from epds_fhir.client import FHIRClient
from epds_fhir.narrative import NarrativeRenderer
from epds_fhir.resources import (
    CodeableConcept,
    Coding,
    Communication,
    CommunicationPayload,
    Flag,
    Meta,
    Observation,
    Reference,
    patient_ref,
    to_payload,
)

logger = logging.getLogger(__name__)

# --- Codings ---
SURVEY_CATEGORY = Coding(
    system="http://terminology.hl7.org/CodeSystem/observation-category",
    code="survey",
    display="Survey",
)
EPDS_TOTAL_CODE = Coding(
    system="http://loinc.org",
    code="99046-5",
    display="Total score [EPDS]",
)
HIGH_RISK_CATEGORY = Coding(
    system="http://example.org/codes",
    code="epds-high-risk",
    display="EPDS High Risk Alert",
)
HIGH_RISK_TAG = Coding(
    system="urn:cornell:epds:tags",
    code="epds-high-risk",
    display="EPDS High Risk Indicator",
)
ALERT_CATEGORY = Coding(
    system="http://terminology.hl7.org/CodeSystem/communication-category",
    code="alert",
    display="Alert",
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class RecordWriter:
    """Creates EPDS Observation, Flag and Communication resources.

    Args:
        client: authenticated FHIR request helper.
        narratives: renderer for the Flag code text and alert message;
            a default :class:`NarrativeRenderer` is built when omitted.
    """

    def __init__(self, client: FHIRClient, narratives: NarrativeRenderer | None = None) -> None:
        self._client = client
        self._narratives = narratives or NarrativeRenderer()

    def build_observation(self, patient_id: str, total: int) -> Observation:
        return Observation(
            category=[CodeableConcept(coding=[SURVEY_CATEGORY])],
            code=CodeableConcept(coding=[EPDS_TOTAL_CODE], text="EPDS Total Score"),
            subject=patient_ref(patient_id),
            effectiveDateTime=_now(),
            valueInteger=total,
        )

    def build_flag(
        self, patient_id: str, encounter_id: str | None, total: int, q10: int,
    ) -> Flag:
        """Without an encounter id the Flag is scoped to the patient only."""
        return Flag(
            category=[CodeableConcept(
                coding=[HIGH_RISK_CATEGORY],
                text="High EPDS Score or Self-Harm Risk Reported",
            )],
            code=CodeableConcept(
                coding=[],
                text=self._narratives.flag_code_text(total=total, q10=q10),
            ),
            subject=patient_ref(patient_id),
            encounter=Reference(reference=f"Encounter/{encounter_id}") if encounter_id else None,
            meta=Meta(tag=[HIGH_RISK_TAG]),
        )

    def build_communication(
        self, patient_id: str, provider_ref: str, total: int, q10: int,
    ) -> Communication:
        text = self._narratives.communication_text(patient_id=patient_id, total=total, q10=q10)
        return Communication(
            category=[CodeableConcept(coding=[ALERT_CATEGORY])],
            subject=patient_ref(patient_id),
            recipient=[Reference(reference=provider_ref)],
            payload=[CommunicationPayload(contentString=text)],
            sent=_now(),
        )

    async def create_observation(self, patient_id: str, total: int, token: str) -> str:
        observation = self.build_observation(patient_id, total)
        observation_id = await self._client.create("Observation", to_payload(observation), token)
        logger.info(
            "Created FHIR Observation with ID: %s for Patient %s", observation_id, patient_id,
        )
        return observation_id

    async def create_flag(
        self, patient_id: str, encounter_id: str | None, total: int, q10: int, token: str,
    ) -> str:
        flag = self.build_flag(patient_id, encounter_id, total, q10)
        flag_id = await self._client.create("Flag", to_payload(flag), token)
        logger.info(
            "Created FHIR Flag with ID: %s for Patient %s (encounter=%s)",
            flag_id, patient_id, encounter_id or "none",
        )
        return flag_id

    async def create_communication(
        self, patient_id: str, provider_ref: str, total: int, q10: int, token: str,
    ) -> str:
        communication = self.build_communication(patient_id, provider_ref, total, q10)
        communication_id = await self._client.create(
            "Communication", to_payload(communication), token,
        )
        logger.info(
            "Created FHIR Communication with ID: %s for Patient %s",
            communication_id, patient_id,
        )
        return communication_id
