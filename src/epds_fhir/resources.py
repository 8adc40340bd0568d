"""FHIR R4 resource models — only the fields this service reads or writes.

The store's schema is far richer; these models cover the create payloads
for Observation, Flag, Communication and Encounter, plus the searchset
``Bundle`` shape used to read back ids.  Serialise with
:func:`to_payload` so ``None`` fields are dropped but empty lists kept.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class Coding(BaseModel):
    system: str
    code: str
    display: str | None = None


class CodeableConcept(BaseModel):
    coding: list[Coding] = Field(default_factory=list)
    text: str | None = None


class Reference(BaseModel):
    reference: str


class Meta(BaseModel):
    tag: list[Coding] = Field(default_factory=list)


class Period(BaseModel):
    start: str | None = None
    end: str | None = None


class Observation(BaseModel):
    """Questionnaire total recorded against the patient."""

    resourceType: Literal["Observation"] = "Observation"
    status: str = "final"
    category: list[CodeableConcept]
    code: CodeableConcept
    subject: Reference
    effectiveDateTime: str
    valueInteger: int


class Flag(BaseModel):
    """High-risk banner; ``encounter`` ties it to a specific visit."""

    resourceType: Literal["Flag"] = "Flag"
    status: str = "active"
    category: list[CodeableConcept]
    code: CodeableConcept
    subject: Reference
    encounter: Reference | None = None
    meta: Meta | None = None


class CommunicationPayload(BaseModel):
    contentString: str


class Communication(BaseModel):
    """Alert message addressed to the configured provider."""

    resourceType: Literal["Communication"] = "Communication"
    status: str = "completed"
    category: list[CodeableConcept]
    subject: Reference
    recipient: list[Reference]
    payload: list[CommunicationPayload]
    sent: str


class Encounter(BaseModel):
    """Ambulatory encounter created by the visit-arrival tool."""

    model_config = ConfigDict(populate_by_name=True)

    resourceType: Literal["Encounter"] = "Encounter"
    status: str
    class_: Coding = Field(alias="class")
    subject: Reference
    appointment: list[Reference] = Field(default_factory=list)
    period: Period | None = None


class BundleEntry(BaseModel):
    resource: dict[str, Any] = Field(default_factory=dict)


class Bundle(BaseModel):
    """Searchset bundle; ``entry`` is absent on an empty result."""

    model_config = ConfigDict(extra="ignore")

    resourceType: str = "Bundle"
    total: int | None = None
    entry: list[BundleEntry] = Field(default_factory=list)


def patient_ref(patient_id: str) -> Reference:
    return Reference(reference=f"Patient/{patient_id}")


def to_payload(resource: BaseModel) -> dict[str, Any]:
    """JSON-ready dict with aliases applied and ``None`` fields removed."""
    return resource.model_dump(mode="json", by_alias=True, exclude_none=True)
