"""Patient and encounter lookups against the FHIR store.

Each resolver method runs one search and returns the id of the first
entry.  No disambiguation happens when several resources match: the store's
ordering (``_sort=-date`` for encounters) decides which one wins.
"""

from __future__ import annotations

import logging
from typing import Any

from epds_fhir.client import FHIRClient
from epds_fhir.errors import MalformedResourceError, ResourceNotFoundError

logger = logging.getLogger(__name__)

# Encounter statuses that count as "the patient is here right now".
ACTIVE_ENCOUNTER_STATUSES: tuple[str, ...] = ("arrived", "in-progress")


def first_id(entries: list[dict[str, Any]], not_found: str, what: str) -> str:
    """Return the id of the first entry, or raise NotFound / Malformed."""
    if not entries:
        raise ResourceNotFoundError(not_found)
    resource_id = entries[0].get("id")
    if not isinstance(resource_id, str) or not resource_id:
        raise MalformedResourceError(f"{what} id missing")
    return resource_id


class PatientResolver:
    """Maps a business identifier (e.g. an MRN) to a Patient id."""

    def __init__(self, client: FHIRClient) -> None:
        self._client = client

    async def resolve_by_identifier(self, system: str, value: str, token: str) -> str:
        entries = await self._client.search(
            "Patient", {"identifier": f"{system}|{value}"}, token,
        )
        return first_id(entries, f"patient not found for {system}|{value}", "patient")


class EncounterResolver:
    """Two independent encounter lookups, most recent first.

    The orchestrator decides the order in which they are tried; neither
    method falls back to the other.
    """

    def __init__(self, client: FHIRClient) -> None:
        self._client = client

    async def resolve_by_appointment(self, appointment_id: str, token: str) -> str:
        entries = await self._client.search(
            "Encounter",
            {
                "appointment": f"Appointment/{appointment_id}",
                "_sort": "-date",
                "_count": "1",
            },
            token,
        )
        return first_id(
            entries, f"no encounter found for appointment {appointment_id}", "encounter",
        )

    async def resolve_active_for_patient(self, patient_id: str, token: str) -> str:
        entries = await self._client.search(
            "Encounter",
            {
                "subject": f"Patient/{patient_id}",
                "status": ",".join(ACTIVE_ENCOUNTER_STATUSES),
                "_sort": "-date",
                "_count": "1",
            },
            token,
        )
        return first_id(
            entries, f"no active encounter found for patient {patient_id}", "encounter",
        )
