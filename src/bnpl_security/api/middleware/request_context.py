"""Request context helpers shared by the middleware and routes."""

import ipaddress
from typing import Dict, Iterable, Optional
from uuid import uuid4

from fastapi import Request

CORRELATION_HEADERS = ("X-Correlation-ID", "X-Request-ID")

SENSITIVE_HEADERS = frozenset({
    "authorization", "cookie", "set-cookie", "x-api-key", "x-auth-token",
    "x-signature", "x-sca-token",
})


def get_correlation_id(request: Request) -> str:
    """Correlation id already assigned to the request, from headers, or new."""
    existing = getattr(request.state, "correlation_id", None)
    if existing:
        return existing
    for header in CORRELATION_HEADERS:
        value = request.headers.get(header)
        if value and len(value) <= 128:
            return value
    return str(uuid4())


def get_client_ip(request: Request) -> str:
    """Get the client IP, preferring proxy headers."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        for candidate in (ip.strip() for ip in forwarded_for.split(",")):
            try:
                ipaddress.ip_address(candidate)
                return candidate
            except ValueError:
                continue

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        try:
            ipaddress.ip_address(real_ip.strip())
            return real_ip.strip()
        except ValueError:
            pass

    if request.client:
        return request.client.host
    return "unknown"


def get_subject_id(request: Request) -> Optional[str]:
    """Authenticated subject set upstream, or the X-User-ID header."""
    return getattr(request.state, "subject_id", None) or request.headers.get("X-User-ID")


def is_https(request: Request) -> bool:
    if request.url.scheme == "https":
        return True
    return request.headers.get("X-Forwarded-Proto", "").lower() == "https"


def sanitize_headers(
    headers: Dict[str, str],
    sensitive: Iterable[str] = SENSITIVE_HEADERS,
) -> Dict[str, str]:
    """Mask sensitive header values for logging."""
    masked = {h.lower() for h in sensitive}
    return {
        name: "***MASKED***" if name.lower() in masked else value
        for name, value in headers.items()
    }
