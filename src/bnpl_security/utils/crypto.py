"""Keyed digest helpers."""

import base64
import hashlib
import hmac


def keyed_digest(key: str, *parts: str) -> str:
    """HMAC-SHA256 over ``parts`` joined by ``|``, base64 encoded."""
    message = "|".join(parts).encode("utf-8")
    digest = hmac.new(key.encode("utf-8"), message, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def constant_time_equals(left: str, right: str) -> bool:
    return hmac.compare_digest(left.encode("utf-8"), right.encode("utf-8"))
