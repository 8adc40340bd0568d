"""EncounterCascade tests with stub strategies — ordering and short-circuit."""

import pytest

from epds_fhir.errors import ResourceNotFoundError, UpstreamError
from epds_fhir.search import EncounterResolver
from epds_screening.interfaces import EncounterStrategy
from epds_screening.models.submission import Submission
from epds_screening.resolution import (
    ActivePatientEncounter,
    AppointmentEncounter,
    EncounterCascade,
    ExplicitEncounter,
)


class StubStrategy(EncounterStrategy):
    """Returns a fixed id or raises a fixed error; counts calls."""

    def __init__(self, name, result=None, error=None):
        self.name = name
        self._result = result
        self._error = error
        self.calls = 0

    async def resolve(self, submission, patient_id, token):
        self.calls += 1
        if self._error is not None:
            raise self._error
        return self._result


@pytest.fixture
def submission():
    return Submission(patient_id="p-1", answers=(0,) * 10)


class TestCascadeOrdering:

    @pytest.mark.asyncio
    async def test_first_success_short_circuits(self, submission):
        first = StubStrategy("first", result="enc-1")
        second = StubStrategy("second", result="enc-2")
        outcome = await EncounterCascade([first, second]).resolve(submission, "p-1", "tok")

        assert outcome.encounter_id == "enc-1"
        assert outcome.source == "first"
        assert second.calls == 0

    @pytest.mark.asyncio
    async def test_not_applicable_moves_on(self, submission):
        skip = StubStrategy("skip", result=None)
        hit = StubStrategy("hit", result="enc-2")
        outcome = await EncounterCascade([skip, hit]).resolve(submission, "p-1", "tok")
        assert outcome.encounter_id == "enc-2"
        assert outcome.failures == ()

    @pytest.mark.asyncio
    async def test_failure_recorded_and_next_tried(self, submission):
        broken = StubStrategy("broken", error=UpstreamError("boom", status_code=500))
        hit = StubStrategy("hit", result="enc-3")
        outcome = await EncounterCascade([broken, hit]).resolve(submission, "p-1", "tok")

        assert outcome.encounter_id == "enc-3"
        assert outcome.failures == (("broken", "boom"),)

    @pytest.mark.asyncio
    async def test_all_fail_yields_no_encounter(self, submission):
        strategies = [
            StubStrategy("a", error=ResourceNotFoundError("none")),
            StubStrategy("b", result=None),
        ]
        outcome = await EncounterCascade(strategies).resolve(submission, "p-1", "tok")
        assert outcome.encounter_id is None
        assert outcome.source is None
        assert [name for name, _ in outcome.failures] == ["a"]

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self, submission):
        """Only FHIR failures are tolerated; programming errors surface."""
        cascade = EncounterCascade([StubStrategy("bug", error=KeyError("x"))])
        with pytest.raises(KeyError):
            await cascade.resolve(submission, "p-1", "tok")


class TestDefaultCascade:

    def test_default_order(self, fhir_client):
        cascade = EncounterCascade.default(EncounterResolver(fhir_client))
        assert [type(s) for s in cascade.strategies] == [
            ExplicitEncounter,
            AppointmentEncounter,
            ActivePatientEncounter,
        ]

    @pytest.mark.asyncio
    async def test_explicit_strategy_returns_submitted_id(self):
        sub = Submission(patient_id="p-1", encounter_id="enc-x", answers=(0,) * 10)
        assert await ExplicitEncounter().resolve(sub, "p-1", "tok") == "enc-x"

    @pytest.mark.asyncio
    async def test_appointment_strategy_not_applicable_without_id(self, submission):
        strategy = AppointmentEncounter(resolver=None)
        assert await strategy.resolve(submission, "p-1", "tok") is None
