"""Visit arrival CLI — ``epds-arrive-visit``.

Makes sure an appointment has an Encounter in ``arrived`` (or already
``in-progress``) status so high-risk Flags can attach to the visit.  Reads
the same ``OYSTEHR_*`` environment variables as the server.

Examples::

    # Arrive the visit for an appointment
    uv run epds-arrive-visit --appointment-id <APPT_UUID> --patient-id <PATIENT_UUID>

    # Verbose output
    uv run epds-arrive-visit --appointment-id <APPT_UUID> --patient-id <PATIENT_UUID> \\
        --log-level DEBUG
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import httpx

from epds_fhir.auth import TokenCache
from epds_fhir.client import FHIRClient
from epds_fhir.config import ConfigurationError, FHIRSettings, load_fhir_settings
from epds_fhir.errors import FHIRError
from epds_fhir.visit import VisitArrival, arrive_visit

logger = logging.getLogger(__name__)


async def run_arrival(
    settings: FHIRSettings,
    *,
    appointment_id: str,
    patient_id: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> VisitArrival:
    """Authenticate and arrive the visit with a short-lived HTTP client."""
    async with httpx.AsyncClient(transport=transport) as http:
        token = await TokenCache(settings, http).get_token()
        client = FHIRClient(settings, http)
        return await arrive_visit(
            client, token, appointment_id=appointment_id, patient_id=patient_id,
        )


def cli() -> None:
    """Console-script entry point: ``epds-arrive-visit``."""
    parser = argparse.ArgumentParser(
        prog="epds-arrive-visit",
        description="Create or update the Encounter for an appointment so it is 'arrived'.",
    )
    parser.add_argument("--appointment-id", required=True, help="Appointment resource id")
    parser.add_argument("--patient-id", required=True, help="Patient resource id")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    try:
        settings = load_fhir_settings()
        arrival = asyncio.run(
            run_arrival(
                settings,
                appointment_id=args.appointment_id,
                patient_id=args.patient_id,
            )
        )
    except (ConfigurationError, FHIRError) as exc:
        logger.error("Visit arrival failed: %s", exc)
        sys.exit(1)

    print(f"Encounter ID: {arrival.encounter_id} (status: {arrival.status}, {arrival.action.value})")
    print("Submit an EPDS questionnaire for this visit with:")
    print(
        "  curl -X POST http://localhost:8080/api/v1/submit-epds "
        f"-d \"patientId={args.patient_id}\" -d \"encounterId={arrival.encounter_id}\" "
        "-d \"q1=3&q2=2&q3=1&q4=2&q5=1&q6=3&q7=1&q8=0&q9=0&q10=1\""
    )
    sys.exit(0)
