"""Value objects for the SCA domain."""

from .enums import (
    ChallengeStatus,
    TERMINAL_STATUSES,
    ProofMethod,
    ExemptionReason,
    ProviderOutcomeStatus,
    EndpointClass,
)
from .exemption_result import ExemptionResult
from .rate_limit import RateLimitRule, RateLimitDecision
from .token_claims import TokenClaims

__all__ = [
    "ChallengeStatus",
    "TERMINAL_STATUSES",
    "ProofMethod",
    "ExemptionReason",
    "ProviderOutcomeStatus",
    "EndpointClass",
    "ExemptionResult",
    "RateLimitRule",
    "RateLimitDecision",
    "TokenClaims",
]
