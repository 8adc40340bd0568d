"""Patient / encounter resolver tests against the fake FHIR store."""

import pytest

from epds_fhir.errors import MalformedResourceError, ResourceNotFoundError, UpstreamError
from epds_fhir.search import EncounterResolver, PatientResolver

from helpers.fake_fhir import PROJECT_ID

MRN_SYSTEM = "http://hospital.example/mrn"


@pytest.fixture
def patients(fhir_client):
    return PatientResolver(fhir_client)


@pytest.fixture
def encounters(fhir_client):
    return EncounterResolver(fhir_client)


# =====================================================================
# PatientResolver
# =====================================================================


class TestPatientResolver:

    @pytest.mark.asyncio
    async def test_resolves_first_match(self, patients, fake):
        fake.patients_by_identifier[f"{MRN_SYSTEM}|MRN-1"] = [{"id": "p-1"}, {"id": "p-2"}]
        assert await patients.resolve_by_identifier(MRN_SYSTEM, "MRN-1", "tok") == "p-1"

    @pytest.mark.asyncio
    async def test_request_shape(self, patients, fake):
        fake.patients_by_identifier[f"{MRN_SYSTEM}|MRN-1"] = [{"id": "p-1"}]
        await patients.resolve_by_identifier(MRN_SYSTEM, "MRN-1", "tok")

        (request,) = fake.fhir_requests("GET", "Patient")
        assert request.url.params["identifier"] == f"{MRN_SYSTEM}|MRN-1"
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.headers["x-zapehr-project-id"] == PROJECT_ID
        assert request.headers["Accept"] == "application/fhir+json"

    @pytest.mark.asyncio
    async def test_empty_bundle_is_not_found(self, patients):
        with pytest.raises(ResourceNotFoundError):
            await patients.resolve_by_identifier(MRN_SYSTEM, "missing", "tok")

    @pytest.mark.asyncio
    async def test_top_hit_without_id_is_malformed(self, patients, fake):
        fake.patients_by_identifier[f"{MRN_SYSTEM}|MRN-1"] = [{"resourceType": "Patient"}]
        with pytest.raises(MalformedResourceError):
            await patients.resolve_by_identifier(MRN_SYSTEM, "MRN-1", "tok")

    @pytest.mark.asyncio
    async def test_non_success_is_upstream(self, patients, fake):
        fake.search_failures["Patient"] = 502
        with pytest.raises(UpstreamError) as exc_info:
            await patients.resolve_by_identifier(MRN_SYSTEM, "MRN-1", "tok")
        assert exc_info.value.status_code == 502


# =====================================================================
# EncounterResolver
# =====================================================================


class TestEncounterResolver:

    @pytest.mark.asyncio
    async def test_by_appointment(self, encounters, fake):
        fake.encounters_by_appointment["appt-1"] = [{"id": "enc-9"}]
        assert await encounters.resolve_by_appointment("appt-1", "tok") == "enc-9"

        (request,) = fake.fhir_requests("GET", "Encounter")
        assert request.url.params["appointment"] == "Appointment/appt-1"
        assert request.url.params["_sort"] == "-date"
        assert request.url.params["_count"] == "1"

    @pytest.mark.asyncio
    async def test_active_for_patient(self, encounters, fake):
        fake.active_encounters_by_patient["p-1"] = [{"id": "enc-1"}]
        assert await encounters.resolve_active_for_patient("p-1", "tok") == "enc-1"

        (request,) = fake.fhir_requests("GET", "Encounter")
        assert request.url.params["subject"] == "Patient/p-1"
        assert request.url.params["status"] == "arrived,in-progress"
        assert request.url.params["_sort"] == "-date"

    @pytest.mark.asyncio
    async def test_appointment_lookup_does_not_fall_back(self, encounters, fake):
        """Each lookup is independent; no implicit second search."""
        fake.active_encounters_by_patient["p-1"] = [{"id": "enc-1"}]
        with pytest.raises(ResourceNotFoundError):
            await encounters.resolve_by_appointment("appt-unknown", "tok")
        assert len(fake.fhir_requests("GET", "Encounter")) == 1

    @pytest.mark.asyncio
    async def test_missing_id_is_malformed(self, encounters, fake):
        fake.active_encounters_by_patient["p-1"] = [{"status": "arrived"}]
        with pytest.raises(MalformedResourceError):
            await encounters.resolve_active_for_patient("p-1", "tok")

    @pytest.mark.asyncio
    async def test_search_error_is_upstream(self, encounters, fake):
        fake.search_failures["Encounter"] = 500
        with pytest.raises(UpstreamError):
            await encounters.resolve_active_for_patient("p-1", "tok")
