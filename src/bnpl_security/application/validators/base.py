"""Proof validator contract and submission types."""

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from ...core.entities import Challenge
from ...core.protocols import ProviderOutcome


@dataclass(frozen=True)
class ProofSubmission:
    """Proof supplied by the caller when validating a challenge."""

    subject_id: str
    one_time_code: Optional[str] = None
    biometric_assertion: Optional[str] = None

    def __repr__(self) -> str:
        # Never render the raw proof material.
        return f"ProofSubmission(subject_id={self.subject_id!r})"


@runtime_checkable
class ProofValidator(Protocol):
    """Validates a submission against a challenge for one proof method."""

    async def validate(self, challenge: Challenge, proof: ProofSubmission) -> ProviderOutcome:
        ...
