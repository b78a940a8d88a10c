"""Claims bound into an SCA session token."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict


@dataclass(frozen=True)
class TokenClaims:
    """Subject and session binding of an issued token."""

    subject_id: str
    session_id: str
    issued_at: datetime
    expires_at: datetime
    issuer: str
    audience: str

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def to_jwt_claims(self) -> Dict[str, Any]:
        return {
            "sub": self.subject_id,
            "sid": self.session_id,
            "iat": int(self.issued_at.timestamp()),
            "exp": int(self.expires_at.timestamp()),
            "iss": self.issuer,
            "aud": self.audience,
        }

    @classmethod
    def from_jwt_claims(cls, claims: Dict[str, Any]) -> "TokenClaims":
        return cls(
            subject_id=str(claims["sub"]),
            session_id=str(claims["sid"]),
            issued_at=datetime.fromtimestamp(int(claims["iat"]), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc),
            issuer=str(claims["iss"]),
            audience=str(claims["aud"]),
        )
