"""Device biometric proof provider.

Issues a random nonce which the subject's device signs after a local
biometric check. The signature is verified against the device key registered
for the subject.
"""

import secrets
from uuid import uuid4

from ...core.protocols import ProofRequest, ProviderHandle, ProviderOutcome
from ...core.value_objects import ProofMethod, ProviderOutcomeStatus


class BiometricProvider:
    """Proof provider issuing nonces for device-signed biometric assertions."""

    method = ProofMethod.BIOMETRIC

    def __init__(self, nonce_bytes: int = 32):
        self._nonce_bytes = nonce_bytes

    async def initiate(self, request: ProofRequest) -> ProviderHandle:
        nonce = secrets.token_urlsafe(self._nonce_bytes)
        return ProviderHandle(
            reference=uuid4().hex,
            display_data={"challenge": nonce},
            secret_digest=nonce,
        )

    async def collect(self, reference: str) -> ProviderOutcome:
        # Assertions are verified locally, nothing to poll.
        return ProviderOutcome(status=ProviderOutcomeStatus.PENDING)
