"""Proof provider contract.

A proof provider is an external system able to confirm a subject's identity
through one proof method. The orchestrator issues exactly one ``initiate``
per challenge and may ``collect`` repeatedly until a terminal outcome.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from ..value_objects import ProofMethod, ProviderOutcomeStatus


@dataclass(frozen=True)
class ProofRequest:
    """Method specific request sent to a provider on initiate."""

    subject_id: str
    method: ProofMethod
    amount: Decimal
    currency: str = "NOK"
    counterparty_id: Optional[str] = None
    national_id: Optional[str] = None
    phone_number: Optional[str] = None
    client_ip: Optional[str] = None
    display_text: Optional[str] = None


@dataclass(frozen=True)
class ProviderHandle:
    """What a provider returns from initiate.

    ``reference`` identifies the proof at the provider, ``display_data`` is
    passed back to the caller (QR payloads, autostart tokens, deep links) and
    ``secret_digest`` holds verifiable material kept server side only.
    """

    reference: str
    display_data: Dict[str, str] = field(default_factory=dict)
    secret_digest: Optional[str] = None


@dataclass(frozen=True)
class ProviderOutcome:
    """Outcome of collecting a proof."""

    status: ProviderOutcomeStatus
    subject_attributes: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    @property
    def is_approved(self) -> bool:
        return self.status == ProviderOutcomeStatus.APPROVED

    @property
    def is_pending(self) -> bool:
        return self.status == ProviderOutcomeStatus.PENDING


@runtime_checkable
class ProofProvider(Protocol):
    """Protocol for identity proof providers."""

    async def initiate(self, request: ProofRequest) -> ProviderHandle:
        """Start a proof and return its handle."""
        ...

    async def collect(self, reference: str) -> ProviderOutcome:
        """Poll the outcome of a previously initiated proof."""
        ...


@runtime_checkable
class OneTimeCodeChannel(Protocol):
    """Out-of-band delivery channel for one-time codes (e.g. SMS)."""

    async def send(self, destination: str, message: str) -> bool:
        """Deliver message. Returns True on acknowledged delivery."""
        ...
