"""SCA session token issuance and validation.

Tokens are HS256 JWTs binding subject, session, issue and expiry time. A copy
of every issued token is kept in the challenge store; deleting that copy
revokes the token even though its signature still verifies.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from jose import JWTError, jwt

from ...config.settings import SCASettings
from ...core.protocols import ChallengeStore
from ...core.value_objects import TokenClaims
from ...utils.crypto import constant_time_equals
from ...utils.datetime import utc_now

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def token_key(subject_id: str, session_id: str) -> str:
    return f"sca:token:{subject_id}:{session_id}"


class TokenService:
    """Issues, validates and revokes SCA session tokens."""

    def __init__(
        self,
        store: ChallengeStore,
        settings: SCASettings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._settings = settings
        self._clock = clock

    @property
    def _signing_key(self) -> str:
        return self._settings.token_signing_key.get_secret_value()

    async def issue_token(self, subject_id: str, session_id: str) -> str:
        """Mint a token and persist its revocable store copy."""
        now = self._clock()
        ttl = timedelta(minutes=self._settings.token_expiry_minutes)
        claims = TokenClaims(
            subject_id=subject_id,
            session_id=session_id,
            issued_at=now,
            expires_at=now + ttl,
            issuer=self._settings.token_issuer,
            audience=self._settings.token_audience,
        )
        token = jwt.encode(claims.to_jwt_claims(), self._signing_key, algorithm=ALGORITHM)
        await self._store.set_with_ttl(
            token_key(subject_id, session_id), token, int(ttl.total_seconds())
        )
        logger.info(f"Issued SCA token for subject {subject_id} session {session_id}")
        return token

    def decode(self, token: str) -> Optional[TokenClaims]:
        """Verify the signature, issuer and audience. None if any check fails."""
        try:
            claims = jwt.decode(
                token,
                self._signing_key,
                algorithms=[ALGORITHM],
                audience=self._settings.token_audience,
                issuer=self._settings.token_issuer,
                options={"verify_exp": False},
            )
            return TokenClaims.from_jwt_claims(claims)
        except (JWTError, KeyError, TypeError, ValueError):
            return None

    async def validate_token(self, token: str, subject_id: str) -> bool:
        """Check signature, subject binding, expiry and the store copy.

        Store failures propagate so that callers fail closed.
        """
        if not token:
            return False

        claims = self.decode(token)
        if claims is None:
            logger.warning(f"Rejected SCA token with invalid signature for subject {subject_id}")
            return False
        if claims.subject_id != subject_id:
            logger.warning(f"Rejected SCA token bound to another subject for {subject_id}")
            return False
        if claims.is_expired(self._clock()):
            return False

        stored = await self._store.get(token_key(claims.subject_id, claims.session_id))
        if stored is None or not constant_time_equals(stored, token):
            logger.info(f"Rejected revoked SCA token for subject {subject_id}")
            return False
        return True

    async def revoke_token(self, subject_id: str, session_id: str) -> bool:
        """Delete the store copy. Returns True if a token was revoked."""
        revoked = await self._store.delete(token_key(subject_id, session_id))
        if revoked:
            logger.info(f"Revoked SCA token for subject {subject_id} session {session_id}")
        return revoked
