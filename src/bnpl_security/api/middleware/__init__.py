"""Request security middleware and error rendering."""

from .security_middleware import RequestSecurityMiddleware, SECURITY_HEADERS
from .error_responses import build_error_response, register_exception_handlers
from .request_context import get_client_ip, get_correlation_id, get_subject_id

__all__ = [
    "RequestSecurityMiddleware",
    "SECURITY_HEADERS",
    "build_error_response",
    "register_exception_handlers",
    "get_client_ip",
    "get_correlation_id",
    "get_subject_id",
]
