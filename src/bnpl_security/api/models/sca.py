"""Pydantic schemas for the SCA API."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...application.services import ScaRequirement, ValidationResult
from ...core.entities import Challenge
from ...core.value_objects import ChallengeStatus, ExemptionReason, ProofMethod


class RequirementRequest(BaseModel):
    """Transaction to evaluate against the SCA policy."""

    subject_id: str = Field(..., min_length=1, max_length=128)
    amount: Decimal = Field(..., ge=0)
    payment_method: str = Field(default="bnpl", max_length=64)
    counterparty_id: Optional[str] = Field(default=None, max_length=128)


class RequirementResponse(BaseModel):
    authentication_required: bool
    policy_required: bool
    exempt: bool
    exemption_reason: Optional[ExemptionReason] = None

    @classmethod
    def from_requirement(cls, requirement: ScaRequirement) -> "RequirementResponse":
        return cls(
            authentication_required=requirement.authentication_required,
            policy_required=requirement.policy_required,
            exempt=requirement.exemption.is_exempt,
            exemption_reason=requirement.exemption.reason,
        )


class InitiateChallengeRequest(RequirementRequest):
    """Start strong authentication for a transaction."""

    preferred_method: Optional[ProofMethod] = None
    session_id: Optional[str] = Field(default=None, max_length=128)
    currency: str = Field(default="NOK", min_length=3, max_length=3)


class ChallengeResponse(BaseModel):
    """Caller view of a challenge. Verifiable material is never included."""

    model_config = ConfigDict(use_enum_values=True)

    challenge_id: str
    session_id: str
    status: ChallengeStatus
    method: Optional[ProofMethod] = None
    expires_at: datetime
    max_attempts: int
    attempts_remaining: int
    exemption_reason: Optional[ExemptionReason] = None
    display_data: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_challenge(cls, challenge: Challenge) -> "ChallengeResponse":
        return cls(
            challenge_id=challenge.challenge_id,
            session_id=challenge.session_id,
            status=challenge.status,
            method=challenge.method,
            expires_at=challenge.expires_at,
            max_attempts=challenge.max_attempts,
            attempts_remaining=challenge.attempts_remaining,
            exemption_reason=challenge.exemption_reason,
            display_data=challenge.display_data,
        )


class ValidateChallengeRequest(BaseModel):
    subject_id: str = Field(..., min_length=1, max_length=128)
    one_time_code: Optional[str] = Field(default=None, max_length=16)
    biometric_assertion: Optional[str] = Field(default=None, max_length=1024)


class ValidationResponse(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    challenge_id: str
    status: ChallengeStatus
    is_valid: bool
    already_completed: bool = False
    token: Optional[str] = None
    error_code: Optional[str] = None
    message: Optional[str] = None
    attempts_remaining: int = 0

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidationResponse":
        return cls(
            challenge_id=result.challenge_id,
            status=result.status,
            is_valid=result.is_valid,
            already_completed=result.status == ChallengeStatus.COMPLETED and not result.fresh,
            token=result.token,
            error_code=result.error_code,
            message=result.message,
            attempts_remaining=result.attempts_remaining,
        )


class TokenVerifyRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=4096)
    subject_id: str = Field(..., min_length=1, max_length=128)


class TokenVerifyResponse(BaseModel):
    valid: bool
    subject_id: Optional[str] = None


class TokenRevokeResponse(BaseModel):
    revoked: bool
