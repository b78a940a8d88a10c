"""Validator for one-time codes."""

from ...core.entities import Challenge
from ...core.protocols import ProviderOutcome
from ...core.value_objects import ProviderOutcomeStatus
from ...infrastructure.providers.one_time_code import digest_one_time_code
from ...utils.crypto import constant_time_equals
from .base import ProofSubmission


class OneTimeCodeValidator:
    """Compares the digest of the supplied code with the stored digest."""

    def __init__(self, digest_key: str):
        self._digest_key = digest_key

    async def validate(self, challenge: Challenge, proof: ProofSubmission) -> ProviderOutcome:
        if not proof.one_time_code or not challenge.secret_digest or not challenge.provider_reference:
            return ProviderOutcome(status=ProviderOutcomeStatus.REJECTED, hint="missing_code")

        supplied = digest_one_time_code(
            self._digest_key, challenge.provider_reference, proof.one_time_code
        )
        if constant_time_equals(supplied, challenge.secret_digest):
            return ProviderOutcome(status=ProviderOutcomeStatus.APPROVED)
        return ProviderOutcome(status=ProviderOutcomeStatus.REJECTED, hint="code_mismatch")
