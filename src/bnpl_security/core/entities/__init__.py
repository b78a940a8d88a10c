"""Domain entities."""

from .challenge import Challenge, ALLOWED_TRANSITIONS

__all__ = ["Challenge", "ALLOWED_TRANSITIONS"]
