"""Replay protected request signatures.

The signature is HMAC-SHA256, base64 encoded, over
``METHOD|path|query|body|timestamp`` where timestamp is Unix seconds. A
timestamp outside the validity window, in either direction, is rejected.
"""

import base64
import hashlib
import hmac
import time
from typing import Callable, Optional, Union

from ...config.settings import SecuritySettings
from ...core.exceptions import SignatureInvalid

SIGNATURE_HEADER = "X-Signature"
TIMESTAMP_HEADER = "X-Timestamp"


def canonical_payload(
    method: str,
    path: str,
    query: str,
    body: Union[bytes, str],
    timestamp: str,
) -> bytes:
    if isinstance(body, str):
        body = body.encode("utf-8")
    prefix = f"{method.upper()}|{path}|{query}|".encode("utf-8")
    return prefix + body + f"|{timestamp}".encode("utf-8")


def sign_request(
    secret: str,
    method: str,
    path: str,
    query: str,
    body: Union[bytes, str],
    timestamp: str,
) -> str:
    """Compute the signature a client sends in ``X-Signature``."""
    payload = canonical_payload(method, path, query, body, timestamp)
    digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


class RequestSignatureVerifier:
    """Verifies signatures on sensitive endpoints."""

    def __init__(self, settings: SecuritySettings, clock: Callable[[], float] = time.time):
        self._secret = settings.signature_secret.get_secret_value()
        self._window_seconds = settings.signature_validity_minutes * 60
        self._markers = [m.lower() for m in settings.signed_path_markers]
        self._clock = clock

    def requires_signature(self, path: str) -> bool:
        lowered = path.lower()
        return any(marker in lowered for marker in self._markers)

    def verify(
        self,
        method: str,
        path: str,
        query: str,
        body: bytes,
        signature: Optional[str],
        timestamp: Optional[str],
    ) -> None:
        """Raise SignatureInvalid unless the request is signed and fresh."""
        if not signature or not timestamp:
            raise SignatureInvalid("Missing signature headers")

        try:
            issued_at = int(timestamp)
        except ValueError:
            raise SignatureInvalid("Invalid timestamp")

        if abs(self._clock() - issued_at) > self._window_seconds:
            raise SignatureInvalid("Request timestamp outside validity window")

        expected = sign_request(self._secret, method, path, query, body, timestamp)
        if not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
            raise SignatureInvalid("Invalid signature")
