"""Base exceptions for bnpl-security.

This module defines the base exception hierarchy. All exceptions inherit from
BnplSecurityError and carry a stable error code, optional details and an HTTP
status code mapping for API responses.
"""

from typing import Any, Dict, Optional

from ...utils.datetime import utc_now


GENERIC_ERROR_MESSAGE = "An error occurred while processing the request"


class BnplSecurityError(Exception):
    """Base exception for all bnpl-security errors.

    Subclasses set ``default_code`` to the stable code exposed to API callers.
    Set ``expose_message`` to False when the message may contain internal
    details that must not reach the caller.
    """

    default_code: str = "INTERNAL_ERROR"
    expose_message: bool = True

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        *args,
        **kwargs
    ):
        super().__init__(message, *args, **kwargs)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}


def get_http_status_code(exception: Exception) -> int:
    """Get HTTP status code for exception.

    Args:
        exception: The exception instance

    Returns:
        HTTP status code
    """
    from .http_mapping import get_http_status_code as get_mapped_status_code
    return get_mapped_status_code(exception)


def create_error_response(
    exception: Exception,
    correlation_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Create the structured error body returned to callers.

    Args:
        exception: The raised exception
        correlation_id: Correlation id of the failing request

    Returns:
        Dictionary with ``code``, ``message``, ``correlationId`` and ``timestamp``
    """
    if isinstance(exception, BnplSecurityError):
        code = exception.error_code
        message = exception.message if exception.expose_message else GENERIC_ERROR_MESSAGE
    else:
        code = BnplSecurityError.default_code
        message = GENERIC_ERROR_MESSAGE

    return {
        "code": code,
        "message": message,
        "correlationId": correlation_id,
        "timestamp": utc_now().isoformat(),
    }
