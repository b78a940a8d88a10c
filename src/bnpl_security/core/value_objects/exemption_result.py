"""Exemption evaluation result."""

from dataclasses import dataclass
from typing import Optional

from .enums import ExemptionReason


@dataclass(frozen=True)
class ExemptionResult:
    """Immutable outcome of an exemption evaluation. Never persisted."""

    is_exempt: bool
    reason: Optional[ExemptionReason] = None

    def __post_init__(self):
        if self.is_exempt and self.reason is None:
            raise ValueError("Exempt result requires a reason")
        if not self.is_exempt and self.reason is not None:
            raise ValueError("Non-exempt result cannot carry a reason")

    @classmethod
    def exempt(cls, reason: ExemptionReason) -> "ExemptionResult":
        return cls(is_exempt=True, reason=reason)

    @classmethod
    def not_exempt(cls) -> "ExemptionResult":
        return cls(is_exempt=False)

    def __bool__(self) -> bool:
        return self.is_exempt
