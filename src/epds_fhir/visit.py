"""Visit arrival — make sure an appointment has an active Encounter.

Used by the ``epds-arrive-visit`` command to prepare a patient for
encounter-linked alerts.  The steps are:

  1. confirm the Appointment exists
  2. look up the most recent Encounter linked to it
  3. already active → nothing to do; other status → patch to ``arrived``
  4. no Encounter at all → create an ambulatory one in ``arrived`` status
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from epds_fhir.client import FHIRClient
from epds_fhir.errors import MalformedResourceError
from epds_fhir.resources import Coding, Encounter, Period, Reference, patient_ref, to_payload
from epds_fhir.search import ACTIVE_ENCOUNTER_STATUSES

logger = logging.getLogger(__name__)

AMBULATORY = Coding(
    system="http://terminology.hl7.org/CodeSystem/v3-ActCode",
    code="AMB",
    display="ambulatory",
)


class ArrivalAction(str, enum.Enum):
    ALREADY_ACTIVE = "already-active"
    UPDATED = "updated"
    CREATED = "created"


@dataclass(frozen=True)
class VisitArrival:
    encounter_id: str
    status: str
    action: ArrivalAction


async def arrive_visit(
    client: FHIRClient, token: str, *, appointment_id: str, patient_id: str,
) -> VisitArrival:
    """Ensure the appointment has an Encounter in an active status."""
    await client.read("Appointment", appointment_id, token)
    logger.info("Appointment %s found", appointment_id)

    entries = await client.search(
        "Encounter",
        {"appointment": f"Appointment/{appointment_id}", "_sort": "-date", "_count": "1"},
        token,
    )
    logger.info("Found %d existing encounters for appointment %s", len(entries), appointment_id)

    if entries:
        encounter = entries[0]
        encounter_id = encounter.get("id")
        if not isinstance(encounter_id, str) or not encounter_id:
            raise MalformedResourceError("encounter id missing")
        status = encounter.get("status", "")
        if status in ACTIVE_ENCOUNTER_STATUSES:
            return VisitArrival(encounter_id, status, ArrivalAction.ALREADY_ACTIVE)

        logger.info("Updating encounter %s status %r -> 'arrived'", encounter_id, status)
        patched = await client.patch(
            "Encounter",
            encounter_id,
            [{"op": "replace", "path": "/status", "value": "arrived"}],
            token,
        )
        return VisitArrival(encounter_id, patched.get("status", "arrived"), ArrivalAction.UPDATED)

    encounter = Encounter(
        status="arrived",
        class_=AMBULATORY,
        subject=patient_ref(patient_id),
        appointment=[Reference(reference=f"Appointment/{appointment_id}")],
        period=Period(start=datetime.now(timezone.utc).isoformat(timespec="seconds")),
    )
    encounter_id = await client.create("Encounter", to_payload(encounter), token)
    return VisitArrival(encounter_id, "arrived", ArrivalAction.CREATED)
