"""Per-method proof validators."""

from .base import ProofSubmission, ProofValidator
from .provider_collect import ProviderCollectValidator
from .one_time_code import OneTimeCodeValidator
from .biometric import BiometricAssertionValidator

__all__ = [
    "ProofSubmission",
    "ProofValidator",
    "ProviderCollectValidator",
    "OneTimeCodeValidator",
    "BiometricAssertionValidator",
]
