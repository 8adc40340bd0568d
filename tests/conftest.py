import httpx
import pytest

from epds_fhir.auth import TokenCache
from epds_fhir.client import FHIRClient
from epds_fhir.config import FHIRSettings
from epds_fhir.search import EncounterResolver, PatientResolver
from epds_fhir.writer import RecordWriter
from epds_screening.workflow import SubmissionWorkflow

from helpers.fake_fhir import AUTH_URL, FHIR_BASE_URL, PROJECT_ID, FakeClock, FakeFHIRServer

PROVIDER_REF = "Practitioner/provider-1"


@pytest.fixture
def fhir_settings():
    return FHIRSettings(
        fhir_base_url=FHIR_BASE_URL,
        auth_url=AUTH_URL,
        project_id=PROJECT_ID,
        client_id="client-id",
        client_secret="client-secret",
        alert_provider_ref=PROVIDER_REF,
    )


@pytest.fixture
def fake():
    """Fresh in-memory identity service + FHIR store for each test."""
    return FakeFHIRServer()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def http(fake):
    return httpx.AsyncClient(transport=fake.transport())


@pytest.fixture
def fhir_client(fhir_settings, http):
    return FHIRClient(fhir_settings, http)


@pytest.fixture
def token_cache(fhir_settings, http, clock):
    return TokenCache(fhir_settings, http, clock=clock)


@pytest.fixture
def workflow(fhir_settings, fhir_client, token_cache):
    """SubmissionWorkflow wired to the fake store."""
    return SubmissionWorkflow(
        token_cache,
        PatientResolver(fhir_client),
        EncounterResolver(fhir_client),
        RecordWriter(fhir_client),
        alert_provider_ref=fhir_settings.alert_provider_ref,
    )
