"""Strong Customer Authentication routes."""

from fastapi import APIRouter, Depends, Request

from ...application.services import InitiateRequest, ScaOrchestrator
from ...application.validators import ProofSubmission
from ...core.exceptions import ChallengeExpired, SubjectMismatch
from ..dependencies import correlation_id, get_orchestrator, require_sca_token
from ..middleware.request_context import get_client_ip
from ..models import (
    ChallengeResponse,
    InitiateChallengeRequest,
    RequirementRequest,
    RequirementResponse,
    TokenRevokeResponse,
    TokenVerifyRequest,
    TokenVerifyResponse,
    ValidateChallengeRequest,
    ValidationResponse,
)

router = APIRouter(prefix="/sca", tags=["sca"])


@router.post("/requirements", response_model=RequirementResponse)
async def evaluate_requirement(
    body: RequirementRequest,
    orchestrator: ScaOrchestrator = Depends(get_orchestrator),
) -> RequirementResponse:
    """Tell the caller whether the transaction needs strong authentication."""
    requirement = await orchestrator.evaluate_requirement(
        body.subject_id, body.amount, body.payment_method, body.counterparty_id
    )
    return RequirementResponse.from_requirement(requirement)


@router.post("/challenges", response_model=ChallengeResponse, status_code=201)
async def initiate_challenge(
    body: InitiateChallengeRequest,
    request: Request,
    orchestrator: ScaOrchestrator = Depends(get_orchestrator),
    cid: str = Depends(correlation_id),
) -> ChallengeResponse:
    challenge = await orchestrator.initiate(
        InitiateRequest(
            subject_id=body.subject_id,
            amount=body.amount,
            payment_method=body.payment_method,
            counterparty_id=body.counterparty_id,
            preferred_method=body.preferred_method,
            session_id=body.session_id,
            currency=body.currency,
            client_ip=get_client_ip(request),
        ),
        correlation_id=cid,
    )
    return ChallengeResponse.from_challenge(challenge)


@router.get("/challenges/{challenge_id}", response_model=ChallengeResponse)
async def get_challenge(
    challenge_id: str,
    subject_id: str,
    orchestrator: ScaOrchestrator = Depends(get_orchestrator),
) -> ChallengeResponse:
    challenge = await orchestrator.get_challenge(challenge_id, subject_id)
    if challenge is None:
        raise ChallengeExpired("Challenge expired or not found")
    return ChallengeResponse.from_challenge(challenge)


@router.post("/challenges/{challenge_id}/validate", response_model=ValidationResponse)
async def validate_challenge(
    challenge_id: str,
    body: ValidateChallengeRequest,
    orchestrator: ScaOrchestrator = Depends(get_orchestrator),
    cid: str = Depends(correlation_id),
) -> ValidationResponse:
    """Submit a proof. Expired and exhausted challenges are returned as errors."""
    result = await orchestrator.validate(
        challenge_id,
        ProofSubmission(
            subject_id=body.subject_id,
            one_time_code=body.one_time_code,
            biometric_assertion=body.biometric_assertion,
        ),
        correlation_id=cid,
    )
    result.raise_for_error()
    return ValidationResponse.from_result(result)


@router.post("/tokens/verify", response_model=TokenVerifyResponse)
async def verify_token(
    body: TokenVerifyRequest,
    orchestrator: ScaOrchestrator = Depends(get_orchestrator),
) -> TokenVerifyResponse:
    return TokenVerifyResponse(valid=await orchestrator.validate_token(body.token, body.subject_id))


@router.delete("/tokens/{subject_id}/{session_id}", response_model=TokenRevokeResponse)
async def revoke_token(
    subject_id: str,
    session_id: str,
    caller_id: str = Depends(require_sca_token),
    orchestrator: ScaOrchestrator = Depends(get_orchestrator),
) -> TokenRevokeResponse:
    """Revoke a session token. Callers may only revoke their own."""
    if caller_id != subject_id:
        raise SubjectMismatch("Cannot revoke another subject's token")
    return TokenRevokeResponse(revoked=await orchestrator.revoke_token(subject_id, session_id))


@router.get("/tokens/current", response_model=TokenVerifyResponse)
async def current_token(subject_id: str = Depends(require_sca_token)) -> TokenVerifyResponse:
    """Check the X-SCA-Token header of the calling subject."""
    return TokenVerifyResponse(valid=True, subject_id=subject_id)
