"""Enumerations shared across the SCA domain."""

from enum import Enum


class ChallengeStatus(str, Enum):
    """Lifecycle states of an authentication challenge."""

    INITIATED = "initiated"
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"
    EXEMPTED = "exempted"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({
    ChallengeStatus.COMPLETED,
    ChallengeStatus.FAILED,
    ChallengeStatus.EXPIRED,
    ChallengeStatus.EXEMPTED,
})


class ProofMethod(str, Enum):
    """Closed set of proof methods a challenge may use."""

    NATIONAL_ID = "national_id"
    MOBILE_WALLET = "mobile_wallet"
    ONE_TIME_CODE = "one_time_code"
    BIOMETRIC = "biometric"

    @property
    def is_push(self) -> bool:
        """Methods whose outcome is collected from an external provider."""
        return self in (ProofMethod.NATIONAL_ID, ProofMethod.MOBILE_WALLET)


class ExemptionReason(str, Enum):
    """Why a transaction skipped strong authentication."""

    NOT_REQUIRED = "not_required"
    LOW_VALUE = "low_value"
    TRUSTED_COUNTERPARTY = "trusted_counterparty"
    RECURRING_PATTERN = "recurring_pattern"
    CORPORATE = "corporate"


class ProviderOutcomeStatus(str, Enum):
    """Result of collecting a proof from a provider."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class EndpointClass(str, Enum):
    """Rate limit classes for endpoints."""

    DEFAULT = "default"
    PAYMENT = "payment"
    AUTH = "auth"
