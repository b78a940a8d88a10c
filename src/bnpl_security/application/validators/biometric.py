"""Validator for device biometric assertions.

The assertion is a base64url signature over the challenge nonce, made with
the private key of the subject's enrolled device. Ed25519 and ECDSA P-256
(SHA-256) device keys are accepted.
"""

import base64
import binascii
import logging

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from cryptography.hazmat.primitives.serialization import load_pem_public_key

from ...core.entities import Challenge
from ...core.protocols import ProviderOutcome, SubjectProfileSource
from ...core.value_objects import ProviderOutcomeStatus
from .base import ProofSubmission

logger = logging.getLogger(__name__)


def _decode_assertion(assertion: str) -> bytes:
    padded = assertion + "=" * (-len(assertion) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


class BiometricAssertionValidator:
    """Verifies device signatures over the biometric challenge nonce."""

    def __init__(self, profiles: SubjectProfileSource):
        self._profiles = profiles

    async def validate(self, challenge: Challenge, proof: ProofSubmission) -> ProviderOutcome:
        if not proof.biometric_assertion or not challenge.secret_digest:
            return ProviderOutcome(status=ProviderOutcomeStatus.REJECTED, hint="missing_assertion")

        pem = await self._profiles.get_device_public_key(challenge.subject_id)
        if not pem:
            return ProviderOutcome(status=ProviderOutcomeStatus.REJECTED, hint="no_device_key")

        try:
            signature = _decode_assertion(proof.biometric_assertion)
        except (binascii.Error, ValueError):
            return ProviderOutcome(status=ProviderOutcomeStatus.REJECTED, hint="malformed_assertion")

        nonce = challenge.secret_digest.encode("utf-8")
        try:
            public_key = load_pem_public_key(pem.encode("utf-8"))
        except ValueError:
            logger.error(f"Unreadable device key for subject {challenge.subject_id}")
            return ProviderOutcome(status=ProviderOutcomeStatus.REJECTED, hint="bad_device_key")

        try:
            if isinstance(public_key, Ed25519PublicKey):
                public_key.verify(signature, nonce)
            elif isinstance(public_key, ec.EllipticCurvePublicKey):
                public_key.verify(signature, nonce, ec.ECDSA(hashes.SHA256()))
            else:
                return ProviderOutcome(
                    status=ProviderOutcomeStatus.REJECTED, hint="unsupported_device_key"
                )
        except InvalidSignature:
            return ProviderOutcome(status=ProviderOutcomeStatus.REJECTED, hint="signature_mismatch")

        return ProviderOutcome(status=ProviderOutcomeStatus.APPROVED)
