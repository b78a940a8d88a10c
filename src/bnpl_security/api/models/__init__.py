"""Request and response schemas for the SCA routes."""

from .sca import (
    RequirementRequest,
    RequirementResponse,
    InitiateChallengeRequest,
    ChallengeResponse,
    ValidateChallengeRequest,
    ValidationResponse,
    TokenVerifyRequest,
    TokenVerifyResponse,
    TokenRevokeResponse,
)

__all__ = [
    "RequirementRequest",
    "RequirementResponse",
    "InitiateChallengeRequest",
    "ChallengeResponse",
    "ValidateChallengeRequest",
    "ValidationResponse",
    "TokenVerifyRequest",
    "TokenVerifyResponse",
    "TokenRevokeResponse",
]
