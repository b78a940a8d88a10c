"""Shared utilities."""

from .crypto import constant_time_equals, keyed_digest
from .datetime import ensure_utc, utc_now

__all__ = ["utc_now", "ensure_utc", "keyed_digest", "constant_time_equals"]
