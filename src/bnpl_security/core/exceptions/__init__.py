"""Exception hierarchy for bnpl-security."""

from .base import (
    BnplSecurityError,
    GENERIC_ERROR_MESSAGE,
    create_error_response,
    get_http_status_code,
)
from .sca import (
    ValidationError,
    AuthenticationRequired,
    SubjectMismatch,
    ExemptionDenied,
    ChallengeExpired,
    ChallengeAttemptsExceeded,
    InvalidChallengeTransition,
    NoAuthenticationMethodAvailable,
    ProviderUnavailable,
)
from .security import (
    RequestTooLarge,
    SignatureInvalid,
    RateLimitExceeded,
    SuspiciousActivityBlocked,
    RegionalFormatError,
    SecurityCheckFailed,
)
from .infrastructure import (
    ChallengeStoreError,
    ChallengeStoreUnavailable,
    ChallengeStoreContention,
)
from .http_mapping import HTTP_STATUS_MAP

__all__ = [
    "BnplSecurityError",
    "GENERIC_ERROR_MESSAGE",
    "create_error_response",
    "get_http_status_code",
    "HTTP_STATUS_MAP",
    "ValidationError",
    "AuthenticationRequired",
    "SubjectMismatch",
    "ExemptionDenied",
    "ChallengeExpired",
    "ChallengeAttemptsExceeded",
    "InvalidChallengeTransition",
    "NoAuthenticationMethodAvailable",
    "ProviderUnavailable",
    "RequestTooLarge",
    "SignatureInvalid",
    "RateLimitExceeded",
    "SuspiciousActivityBlocked",
    "RegionalFormatError",
    "SecurityCheckFailed",
    "ChallengeStoreError",
    "ChallengeStoreUnavailable",
    "ChallengeStoreContention",
]
