"""One-time code proof provider.

Generates a numeric code, delivers it over an out-of-band channel and keeps
only a keyed digest. The code itself comes back from the end user on
validation, never from the channel.
"""

import logging
import secrets
from uuid import uuid4

from ...core.exceptions import ProviderUnavailable, ValidationError
from ...core.protocols import (
    OneTimeCodeChannel,
    ProofRequest,
    ProviderHandle,
    ProviderOutcome,
)
from ...core.value_objects import ProofMethod, ProviderOutcomeStatus
from ...utils.crypto import keyed_digest

logger = logging.getLogger(__name__)


def digest_one_time_code(key: str, reference: str, code: str) -> str:
    """Keyed digest binding a code to the handle it was issued for."""
    return keyed_digest(key, reference, code.strip())


class OneTimeCodeProvider:
    """Proof provider delivering one-time codes through a channel."""

    method = ProofMethod.ONE_TIME_CODE

    def __init__(
        self,
        channel: OneTimeCodeChannel,
        digest_key: str,
        code_length: int = 6,
        expiry_minutes: int = 5,
    ):
        self._channel = channel
        self._digest_key = digest_key
        self._code_length = code_length
        self._expiry_minutes = expiry_minutes

    def _generate_code(self) -> str:
        return "".join(str(secrets.randbelow(10)) for _ in range(self._code_length))

    async def initiate(self, request: ProofRequest) -> ProviderHandle:
        if not request.phone_number:
            raise ValidationError("No contact channel available for one-time code")

        code = self._generate_code()
        reference = uuid4().hex
        message = (
            f"Your verification code is: {code}. "
            f"Valid for {self._expiry_minutes} minutes."
        )

        delivered = await self._channel.send(request.phone_number, message)
        if not delivered:
            raise ProviderUnavailable(
                "One-time code delivery was not acknowledged",
                method=self.method.value,
            )

        logger.info(f"One-time code sent for subject {request.subject_id}")
        return ProviderHandle(
            reference=reference,
            display_data={"delivery": "sms", "code_length": str(self._code_length)},
            secret_digest=digest_one_time_code(self._digest_key, reference, code),
        )

    async def collect(self, reference: str) -> ProviderOutcome:
        # Codes are checked against the stored digest, nothing to poll.
        return ProviderOutcome(status=ProviderOutcomeStatus.PENDING)
