"""HTTP status code mapping for exceptions."""

from typing import Dict, Type

from .base import BnplSecurityError
from .sca import *
from .security import *
from .infrastructure import *


HTTP_STATUS_MAP: Dict[Type[BnplSecurityError], int] = {
    # 400 Bad Request
    ValidationError: 400,
    RegionalFormatError: 400,

    # 401 Unauthorized
    AuthenticationRequired: 401,
    SignatureInvalid: 401,

    # 403 Forbidden
    ExemptionDenied: 403,
    SubjectMismatch: 403,
    ChallengeAttemptsExceeded: 403,
    SuspiciousActivityBlocked: 403,

    # 409 Conflict
    InvalidChallengeTransition: 409,

    # 410 Gone
    ChallengeExpired: 410,

    # 413 Payload Too Large
    RequestTooLarge: 413,

    # 422 Unprocessable Entity
    NoAuthenticationMethodAvailable: 422,

    # 429 Too Many Requests
    RateLimitExceeded: 429,

    # 500 Internal Server Error
    SecurityCheckFailed: 500,
    BnplSecurityError: 500,

    # 503 Service Unavailable
    ProviderUnavailable: 503,
    ChallengeStoreError: 503,
}


def get_http_status_code(exception: Exception) -> int:
    """Get HTTP status code for an exception, walking its class hierarchy.

    Args:
        exception: The exception instance

    Returns:
        HTTP status code, 500 for unmapped exceptions
    """
    for exc_type in type(exception).__mro__:
        if exc_type in HTTP_STATUS_MAP:
            return HTTP_STATUS_MAP[exc_type]
    return 500
