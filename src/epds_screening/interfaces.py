"""Abstract interface for encounter discovery strategies.

The workflow holds an ordered list of strategies and asks each in turn for
an encounter id.  A strategy either returns an id, returns ``None`` when it
does not apply to this submission (e.g. no appointment id was sent), or
raises :class:`~epds_fhir.errors.FHIRError` when its lookup failed.

Typical integration flow::

    cascade = EncounterCascade([
        ExplicitEncounter(),
        AppointmentEncounter(encounter_resolver),
        ActivePatientEncounter(encounter_resolver),
    ])
    outcome = await cascade.resolve(submission, patient_id, token)
    # outcome.encounter_id may be None; that is not an error
"""

from abc import ABC, abstractmethod

from epds_screening.models.submission import Submission


class EncounterStrategy(ABC):
    """One way of finding the encounter a high-risk alert belongs to."""

    #: Short label used in logs, e.g. ``"appointment"``.
    name: str = "strategy"

    @abstractmethod
    async def resolve(self, submission: Submission, patient_id: str, token: str) -> str | None:
        """Return an encounter id, ``None`` if not applicable, or raise.

        Parameters
        ----------
        submission:
            The validated submission (for explicit/appointment ids).
        patient_id:
            The already-resolved Patient id.
        token:
            Bearer token for any remote lookup.
        """
        ...
