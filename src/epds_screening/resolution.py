"""Encounter cascade — ordered strategies, first id wins.

Default order:

    explicit encounterId ──► by appointment ──► active for patient ──► none

A strategy that raises is logged and the next one is tried.  When every
strategy comes up empty the cascade still succeeds, with no encounter id;
the alert is then scoped to the patient alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from epds_fhir.errors import FHIRError
from epds_fhir.search import EncounterResolver

from epds_screening.interfaces import EncounterStrategy
from epds_screening.models.submission import Submission

logger = logging.getLogger(__name__)


class ExplicitEncounter(EncounterStrategy):
    """Use the ``encounterId`` the caller sent; no remote call."""

    name = "explicit"

    async def resolve(self, submission: Submission, patient_id: str, token: str) -> str | None:
        return submission.encounter_id


class AppointmentEncounter(EncounterStrategy):
    """Most recent Encounter linked to the submitted ``appointmentId``."""

    name = "appointment"

    def __init__(self, resolver: EncounterResolver) -> None:
        self._resolver = resolver

    async def resolve(self, submission: Submission, patient_id: str, token: str) -> str | None:
        if not submission.appointment_id:
            return None
        return await self._resolver.resolve_by_appointment(submission.appointment_id, token)


class ActivePatientEncounter(EncounterStrategy):
    """Most recent arrived / in-progress Encounter for the patient."""

    name = "active-patient"

    def __init__(self, resolver: EncounterResolver) -> None:
        self._resolver = resolver

    async def resolve(self, submission: Submission, patient_id: str, token: str) -> str | None:
        return await self._resolver.resolve_active_for_patient(patient_id, token)


@dataclass(frozen=True)
class CascadeOutcome:
    """Which strategy produced the encounter (if any) and what failed on the way."""

    encounter_id: str | None = None
    source: str | None = None
    failures: tuple[tuple[str, str], ...] = field(default_factory=tuple)


class EncounterCascade:
    """Tries each strategy in order, short-circuiting on the first id."""

    def __init__(self, strategies: list[EncounterStrategy]) -> None:
        self._strategies = list(strategies)

    @classmethod
    def default(cls, resolver: EncounterResolver) -> EncounterCascade:
        return cls([
            ExplicitEncounter(),
            AppointmentEncounter(resolver),
            ActivePatientEncounter(resolver),
        ])

    @property
    def strategies(self) -> list[EncounterStrategy]:
        return list(self._strategies)

    async def resolve(self, submission: Submission, patient_id: str, token: str) -> CascadeOutcome:
        failures: list[tuple[str, str]] = []
        for strategy in self._strategies:
            try:
                encounter_id = await strategy.resolve(submission, patient_id, token)
            except FHIRError as exc:
                logger.warning(
                    "Encounter lookup via %s failed for patient %s: %s",
                    strategy.name, patient_id, exc,
                )
                failures.append((strategy.name, str(exc)))
                continue
            if encounter_id:
                logger.info("Found encounter %s via %s", encounter_id, strategy.name)
                return CascadeOutcome(encounter_id, strategy.name, tuple(failures))

        logger.warning(
            "No active Encounter found for patient %s; creating patient-scoped Flag only",
            patient_id,
        )
        return CascadeOutcome(failures=tuple(failures))
