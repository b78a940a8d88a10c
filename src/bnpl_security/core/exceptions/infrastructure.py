"""Infrastructure exceptions for the challenge store."""

from .base import BnplSecurityError


class ChallengeStoreError(BnplSecurityError):
    """Base exception for challenge store errors."""

    default_code = "STORE_ERROR"
    expose_message = False


class ChallengeStoreUnavailable(ChallengeStoreError):
    """Challenge store could not be reached or did not respond."""

    default_code = "SERVICE_UNAVAILABLE"


class ChallengeStoreContention(ChallengeStoreError):
    """Compare-and-swap retries were exhausted under concurrent updates."""

    default_code = "SERVICE_UNAVAILABLE"
