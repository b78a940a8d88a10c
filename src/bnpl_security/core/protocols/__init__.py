"""Protocols for the collaborators of the SCA core."""

from .challenge_store import ChallengeStore, IncrementResult
from .proof_provider import (
    ProofRequest,
    ProviderHandle,
    ProviderOutcome,
    ProofProvider,
    OneTimeCodeChannel,
)
from .subject_profile import SubjectProfileSource

__all__ = [
    "ChallengeStore",
    "IncrementResult",
    "ProofRequest",
    "ProviderHandle",
    "ProviderOutcome",
    "ProofProvider",
    "OneTimeCodeChannel",
    "SubjectProfileSource",
]
