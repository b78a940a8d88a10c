"""Built-in proof providers."""

from .one_time_code import OneTimeCodeProvider, digest_one_time_code
from .biometric import BiometricProvider

__all__ = ["OneTimeCodeProvider", "digest_one_time_code", "BiometricProvider"]
