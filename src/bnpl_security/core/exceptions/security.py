"""Request security exceptions raised by the middleware."""

from typing import Optional

from .base import BnplSecurityError


class RequestTooLarge(BnplSecurityError):
    """Request body exceeds the configured ceiling."""

    default_code = "REQUEST_TOO_LARGE"


class SignatureInvalid(BnplSecurityError):
    """Request signature is missing, stale or does not verify."""

    default_code = "INVALID_SIGNATURE"


class RateLimitExceeded(BnplSecurityError):
    """Client exceeded the rate limit for the endpoint."""

    default_code = "RATE_LIMIT_EXCEEDED"

    def __init__(
        self,
        message: str,
        limit: int,
        remaining: int = 0,
        retry_after: int = 0,
        reset_at: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.limit = limit
        self.remaining = max(0, remaining)
        self.retry_after = retry_after
        self.reset_at = reset_at


class SuspiciousActivityBlocked(BnplSecurityError):
    """Request blocked by compounded abuse heuristics."""

    default_code = "SUSPICIOUS_ACTIVITY"


class RegionalFormatError(BnplSecurityError):
    """Regional header (phone, postal code, organization number) is malformed."""

    default_code = "INVALID_REGIONAL_FORMAT"


class SecurityCheckFailed(BnplSecurityError):
    """A security check failed internally. Rendered generically."""

    default_code = "SECURITY_CHECK_FAILED"
    expose_message = False
