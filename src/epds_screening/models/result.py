"""Result models — score, resolved context, and what the caller gets back.

``SubmissionReceipt`` is the only thing the workflow returns.  Side-write
outcomes and the encounter cascade result are logged, never returned.
"""

import enum
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict


class RiskLevel(str, enum.Enum):
    LOW = "low"
    HIGH = "high"


class ScoreResult(BaseModel):
    """Pure function of the ten answers."""

    model_config = ConfigDict(frozen=True)

    total: int
    q10: int
    risk: RiskLevel

    @property
    def is_high_risk(self) -> bool:
        return self.risk is RiskLevel.HIGH


class ResolvedContext(BaseModel):
    """Patient (always) and encounter (when one was found or supplied)."""

    model_config = ConfigDict(frozen=True)

    patient_id: str
    encounter_id: str | None = None


class SubmissionReceipt(BaseModel):
    """Successful outcome: the Observation was durably written."""

    model_config = ConfigDict(frozen=True)

    observation_id: str
    total: int


@dataclass(frozen=True)
class SideWriteOutcome:
    """Result of one best-effort write, kept for logging only."""

    operation: str
    resource_id: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
