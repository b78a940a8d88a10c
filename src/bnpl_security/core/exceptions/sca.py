"""Strong Customer Authentication exceptions."""

from .base import BnplSecurityError


class ValidationError(BnplSecurityError):
    """Malformed input. Not security relevant."""

    default_code = "VALIDATION_ERROR"


class AuthenticationRequired(BnplSecurityError):
    """Strong authentication is required before the operation may proceed."""

    default_code = "AUTHENTICATION_REQUIRED"


class SubjectMismatch(BnplSecurityError):
    """Authenticated subject may not act on another subject's resources."""

    default_code = "SUBJECT_MISMATCH"


class ExemptionDenied(BnplSecurityError):
    """The transaction does not qualify for an SCA exemption."""

    default_code = "EXEMPTION_DENIED"


class ChallengeExpired(BnplSecurityError):
    """Challenge is expired or unknown.

    Unknown challenges are reported as expired so callers cannot probe for
    challenge existence.
    """

    default_code = "CHALLENGE_EXPIRED"


class ChallengeAttemptsExceeded(BnplSecurityError):
    """The challenge attempt budget is exhausted."""

    default_code = "CHALLENGE_ATTEMPTS_EXCEEDED"


class InvalidChallengeTransition(BnplSecurityError):
    """Attempted a state transition the challenge state machine does not allow."""

    default_code = "INVALID_CHALLENGE_TRANSITION"
    expose_message = False


class NoAuthenticationMethodAvailable(BnplSecurityError):
    """The subject has no proof method that can be used."""

    default_code = "NO_AUTHENTICATION_METHOD"


class ProviderUnavailable(BnplSecurityError):
    """Proof provider call failed or timed out. The caller may retry."""

    default_code = "PROVIDER_UNAVAILABLE"

    def __init__(self, message: str, method: str = None, **kwargs):
        details = kwargs.pop("details", None) or {}
        if method:
            details["method"] = method
        details["retryable"] = True
        super().__init__(message, details=details, **kwargs)
        self.method = method
