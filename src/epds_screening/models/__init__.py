"""Public model re-exports for epds_screening.

Consumers should import from ``epds_screening.models`` rather than
reaching into sub-modules directly.
"""

from epds_screening.models.result import (
    ResolvedContext,
    RiskLevel,
    ScoreResult,
    SideWriteOutcome,
    SubmissionReceipt,
)
from epds_screening.models.submission import IdentifierPair, Submission

__all__ = [
    "IdentifierPair",
    "ResolvedContext",
    "RiskLevel",
    "ScoreResult",
    "SideWriteOutcome",
    "Submission",
    "SubmissionReceipt",
]
