"""Validator for push methods whose outcome is collected from the provider."""

import asyncio
import logging

from ...core.entities import Challenge
from ...core.exceptions import ProviderUnavailable
from ...core.protocols import ProofProvider, ProviderOutcome
from ...core.value_objects import ProviderOutcomeStatus
from .base import ProofSubmission

logger = logging.getLogger(__name__)


class ProviderCollectValidator:
    """Collects the outcome of a national identity or mobile wallet proof.

    A collect that fails or times out raises ProviderUnavailable and is never
    retried here, since the attempt has already been charged.
    """

    def __init__(self, provider: ProofProvider, timeout_seconds: float):
        self._provider = provider
        self._timeout_seconds = timeout_seconds

    async def validate(self, challenge: Challenge, proof: ProofSubmission) -> ProviderOutcome:
        if not challenge.provider_reference:
            return ProviderOutcome(status=ProviderOutcomeStatus.REJECTED, hint="missing_reference")

        method = challenge.method.value if challenge.method else None
        try:
            return await asyncio.wait_for(
                self._provider.collect(challenge.provider_reference),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Provider collect timed out for challenge {challenge.challenge_id}")
            raise ProviderUnavailable("Proof provider timed out", method=method)
        except ProviderUnavailable:
            raise
        except Exception as e:
            logger.error(
                f"Provider collect failed for challenge {challenge.challenge_id}: "
                f"{type(e).__name__}"
            )
            raise ProviderUnavailable("Proof provider request failed", method=method) from e
