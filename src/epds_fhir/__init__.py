"""epds_fhir — identity-service and FHIR store access for the EPDS service.

This package owns everything that leaves the process: the M2M token
cache, the authenticated FHIR client, patient/encounter resolvers and the
record writer.  It is consumed by ``epds_screening`` and the server.
"""

from epds_fhir.auth import Credential, TokenCache
from epds_fhir.client import FHIRClient
from epds_fhir.config import ConfigurationError, FHIRSettings, load_fhir_settings
from epds_fhir.errors import (
    AuthenticationError,
    FHIRError,
    MalformedResourceError,
    ResourceNotFoundError,
    UpstreamError,
)
from epds_fhir.narrative import NarrativeRenderer
from epds_fhir.search import EncounterResolver, PatientResolver
from epds_fhir.visit import ArrivalAction, VisitArrival, arrive_visit
from epds_fhir.writer import RecordWriter

__all__ = [
    "ArrivalAction",
    "AuthenticationError",
    "ConfigurationError",
    "Credential",
    "EncounterResolver",
    "FHIRClient",
    "FHIRError",
    "FHIRSettings",
    "MalformedResourceError",
    "NarrativeRenderer",
    "PatientResolver",
    "RecordWriter",
    "ResourceNotFoundError",
    "TokenCache",
    "UpstreamError",
    "VisitArrival",
    "arrive_visit",
    "load_fhir_settings",
]
