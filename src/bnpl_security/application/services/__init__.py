"""Application services."""

from .exemption_engine import ExemptionEngine, ExemptionFacts
from .token_service import TokenService, token_key
from .sca_orchestrator import (
    ScaOrchestrator,
    InitiateRequest,
    ScaRequirement,
    ValidationResult,
    challenge_key,
)
from .rate_limiter import FixedWindowRateLimiter, normalize_endpoint
from .signature_verifier import RequestSignatureVerifier, sign_request, canonical_payload
from .abuse_detector import SuspiciousActivityDetector, HeuristicVerdict
from .regional_validator import (
    RegionalHeaderValidator,
    is_valid_org_number,
    is_valid_phone_number,
    is_valid_postal_code,
)

__all__ = [
    "ExemptionEngine",
    "ExemptionFacts",
    "TokenService",
    "token_key",
    "ScaOrchestrator",
    "InitiateRequest",
    "ScaRequirement",
    "ValidationResult",
    "challenge_key",
    "FixedWindowRateLimiter",
    "normalize_endpoint",
    "RequestSignatureVerifier",
    "sign_request",
    "canonical_payload",
    "SuspiciousActivityDetector",
    "HeuristicVerdict",
    "RegionalHeaderValidator",
    "is_valid_org_number",
    "is_valid_phone_number",
    "is_valid_postal_code",
]
