"""FastAPI dependencies for the SCA routes."""

from fastapi import Depends, Header, Request

from ..application.services import ScaOrchestrator
from ..core.exceptions import AuthenticationRequired
from .middleware.request_context import get_correlation_id

SCA_TOKEN_HEADER = "X-SCA-Token"


def get_orchestrator(request: Request) -> ScaOrchestrator:
    """Orchestrator wired by the app factory."""
    return request.app.state.orchestrator


def correlation_id(request: Request) -> str:
    return get_correlation_id(request)


async def require_sca_token(
    request: Request,
    x_sca_token: str = Header(default="", alias=SCA_TOKEN_HEADER),
    x_user_id: str = Header(default="", alias="X-User-ID"),
    orchestrator: ScaOrchestrator = Depends(get_orchestrator),
) -> str:
    """Guard for endpoints that need a completed SCA.

    Returns the authenticated subject id.

    Raises:
        AuthenticationRequired: token missing, invalid, expired or revoked
    """
    subject_id = getattr(request.state, "subject_id", None) or x_user_id
    if not x_sca_token or not subject_id:
        raise AuthenticationRequired("Strong customer authentication token required")
    if not await orchestrator.validate_token(x_sca_token, subject_id):
        raise AuthenticationRequired("Strong customer authentication token is not valid")
    return subject_id
