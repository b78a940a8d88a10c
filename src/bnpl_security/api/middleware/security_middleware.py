"""Request security middleware for FastAPI applications.

Gates every inbound request, in order: body size, rate limit, request
signature on sensitive endpoints, abuse heuristics and regional header
formats. Security headers and the correlation id are added to every
response, rejected or not.
"""

import logging
import time
from typing import Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from ...application.services import (
    FixedWindowRateLimiter,
    RegionalHeaderValidator,
    RequestSignatureVerifier,
    SuspiciousActivityDetector,
)
from ...application.services.abuse_detector import HeuristicVerdict
from ...application.services.signature_verifier import SIGNATURE_HEADER, TIMESTAMP_HEADER
from ...config.settings import SecuritySettings
from ...core.exceptions import (
    BnplSecurityError,
    ChallengeStoreError,
    RateLimitExceeded,
    RequestTooLarge,
    SecurityCheckFailed,
    SuspiciousActivityBlocked,
    ValidationError,
)
from ...core.protocols import ChallengeStore
from .error_responses import build_error_response
from .request_context import (
    get_client_ip,
    get_correlation_id,
    get_subject_id,
    is_https,
    sanitize_headers,
)

logger = logging.getLogger(__name__)

BODY_METHODS = ("POST", "PUT", "PATCH")
MAX_LOGGED_BODY = 1024

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": (
        "default-src 'self'; "
        "script-src 'self'; "
        "style-src 'self'; "
        "img-src 'self' data: https:; "
        "connect-src 'self' https:; "
        "frame-ancestors 'none';"
    ),
    "Permissions-Policy": (
        "geolocation=(), "
        "microphone=(), "
        "camera=(), "
        "payment=(self)"
    ),
}

HSTS_HEADER = ("Strict-Transport-Security", "max-age=31536000; includeSubDomains")


class RequestSecurityMiddleware(BaseHTTPMiddleware):
    """Fail-closed request gate with a fail-open heuristic layer."""

    def __init__(
        self,
        app,
        settings: SecuritySettings,
        store: ChallengeStore,
        rate_limiter: Optional[FixedWindowRateLimiter] = None,
        signature_verifier: Optional[RequestSignatureVerifier] = None,
        detector: Optional[SuspiciousActivityDetector] = None,
        regional_validator: Optional[RegionalHeaderValidator] = None,
    ):
        super().__init__(app)
        self.settings = settings
        self.rate_limiter = rate_limiter or FixedWindowRateLimiter(store, settings)
        self.signature_verifier = signature_verifier or RequestSignatureVerifier(settings)
        self.detector = detector or SuspiciousActivityDetector(store, settings)
        self.regional_validator = regional_validator or RegionalHeaderValidator(settings)
        self.exempt_paths = list(settings.exempt_paths)

    async def dispatch(self, request: Request, call_next) -> Response:
        """Apply security checks, then headers and logging."""
        correlation_id = get_correlation_id(request)
        request.state.correlation_id = correlation_id
        path = request.url.path

        if any(path.startswith(exempt) for exempt in self.exempt_paths):
            response = await call_next(request)
            self._finalize(request, response, correlation_id)
            return response

        start_time = time.time()
        client_ip = get_client_ip(request)
        sensitive = self.signature_verifier.requires_signature(path)
        await self._log_request(request, correlation_id, client_ip, sensitive)

        try:
            rate_headers = await self._run_checks(request, client_ip, sensitive, correlation_id)
        except ChallengeStoreError as e:
            response = self._reject_internal(e, correlation_id)
        except BnplSecurityError as e:
            logger.warning(
                f"[{correlation_id}] Request rejected: {e.error_code} {request.method} {path}",
                extra={"structured_data": {
                    "event_type": "security_rejection",
                    "error_code": e.error_code,
                    "client_ip": client_ip,
                    "path": path,
                    "correlation_id": correlation_id,
                }},
            )
            response = build_error_response(e, correlation_id)
        except Exception as e:
            response = self._reject_internal(e, correlation_id)
        else:
            response = await call_next(request)
            for header, value in rate_headers.items():
                if header not in response.headers:
                    response.headers[header] = value

        self._finalize(request, response, correlation_id)
        self._log_response(request, response, correlation_id, start_time)
        return response

    def _reject_internal(self, error: Exception, correlation_id: str) -> Response:
        logger.error(
            f"[{correlation_id}] Security check error, rejecting request: "
            f"{type(error).__name__}: {error}",
            exc_info=True,
        )
        return build_error_response(SecurityCheckFailed("Security check failed"), correlation_id)

    async def _run_checks(
        self,
        request: Request,
        client_ip: str,
        sensitive: bool,
        correlation_id: str,
    ) -> Dict[str, str]:
        """Run the fail-closed checks and the heuristics. Returns rate limit headers."""
        path = request.url.path

        # 1. Size
        body = await self._check_size(request, read_body=sensitive)

        # 2. Rate limit
        decision = await self.rate_limiter.check(client_ip, get_subject_id(request), path)
        if not decision.allowed:
            raise RateLimitExceeded(
                "Rate limit exceeded",
                limit=decision.limit,
                remaining=decision.remaining,
                retry_after=decision.retry_after,
                reset_at=decision.reset_at,
            )

        # 3. Signature
        if sensitive:
            self.signature_verifier.verify(
                method=request.method,
                path=path,
                query=request.url.query,
                body=body if body is not None else await request.body(),
                signature=request.headers.get(SIGNATURE_HEADER),
                timestamp=request.headers.get(TIMESTAMP_HEADER),
            )

        # 4. Heuristics
        verdict = await self._evaluate_heuristics(request, client_ip, correlation_id)
        if verdict.blocked:
            raise SuspiciousActivityBlocked("Request blocked due to suspicious activity")

        # 5. Regional formats
        if self.regional_validator.applies_to(path):
            self.regional_validator.validate(request.headers)

        return decision.headers

    async def _check_size(self, request: Request, read_body: bool) -> Optional[bytes]:
        """Reject oversized bodies. Returns the body when it had to be read."""
        max_size = self.settings.max_request_size_bytes
        content_length = request.headers.get("Content-Length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                raise ValidationError("Invalid Content-Length header")
            if declared > max_size:
                raise RequestTooLarge(f"Request body exceeds {max_size} bytes")
            if not read_body:
                return None
        elif not read_body and request.method not in BODY_METHODS:
            return None

        body = await request.body()
        if len(body) > max_size:
            raise RequestTooLarge(f"Request body exceeds {max_size} bytes")
        return body

    async def _evaluate_heuristics(
        self,
        request: Request,
        client_ip: str,
        correlation_id: str,
    ) -> HeuristicVerdict:
        """Soft layer: any failure here counts as no signal."""
        user_agent = request.headers.get("User-Agent")
        try:
            verdict = await self.detector.evaluate(
                client_ip, user_agent, request.url.path, request.url.query
            )
        except Exception as e:
            logger.warning(f"[{correlation_id}] Heuristics failed, allowing request: {e}")
            return HeuristicVerdict()

        if verdict.flagged:
            logger.warning(
                f"[{correlation_id}] Suspicious request from {client_ip}: "
                f"{', '.join(verdict.signals)}",
                extra={"structured_data": {
                    "event_type": "suspicious_activity",
                    "client_ip": client_ip,
                    "path": request.url.path,
                    "signals": list(verdict.signals),
                    "blocked": verdict.blocked,
                    "correlation_id": correlation_id,
                }},
            )
            await self.detector.record(
                client_ip, verdict, request.method, request.url.path, user_agent, correlation_id
            )
        return verdict

    def _finalize(self, request: Request, response: Response, correlation_id: str) -> None:
        for header, value in SECURITY_HEADERS.items():
            if header not in response.headers:
                response.headers[header] = value
        if is_https(request):
            response.headers[HSTS_HEADER[0]] = HSTS_HEADER[1]
        response.headers["X-Correlation-ID"] = correlation_id

    async def _log_request(
        self,
        request: Request,
        correlation_id: str,
        client_ip: str,
        sensitive: bool,
    ) -> None:
        if not self.settings.enable_request_logging:
            return

        request_log = {
            "event_type": "request_start",
            "correlation_id": correlation_id,
            "method": request.method,
            "path": request.url.path,
            "client_ip": client_ip,
            "user_agent": request.headers.get("User-Agent"),
            "headers": sanitize_headers(dict(request.headers)),
        }
        if self.settings.log_request_body and not sensitive:
            declared = request.headers.get("Content-Length", "0")
            if declared.isdigit() and int(declared) <= MAX_LOGGED_BODY:
                body = await request.body()
                request_log["request_body"] = body.decode("utf-8", errors="replace")
        logger.info(
            f"[{correlation_id}] {request.method} {request.url.path}",
            extra={"structured_data": request_log},
        )

    def _log_response(
        self,
        request: Request,
        response: Response,
        correlation_id: str,
        start_time: float,
    ) -> None:
        if not self.settings.enable_response_logging:
            return

        processing_time = time.time() - start_time
        if response.status_code >= 500:
            log_level = logging.ERROR
        elif response.status_code >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO
        logger.log(
            log_level,
            f"[{correlation_id}] Request completed - {response.status_code} "
            f"in {processing_time * 1000:.2f}ms",
            extra={"structured_data": {
                "event_type": "request_complete",
                "correlation_id": correlation_id,
                "path": request.url.path,
                "status_code": response.status_code,
                "processing_time_ms": round(processing_time * 1000, 2),
            }},
        )
