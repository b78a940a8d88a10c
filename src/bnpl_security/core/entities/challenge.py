"""Authentication challenge domain entity."""

import json
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from uuid import uuid4

from ...utils.datetime import ensure_utc, utc_now
from ..exceptions import InvalidChallengeTransition
from ..value_objects import ChallengeStatus, ExemptionReason, ProofMethod


ALLOWED_TRANSITIONS = {
    ChallengeStatus.INITIATED: {ChallengeStatus.PENDING, ChallengeStatus.EXEMPTED},
    ChallengeStatus.PENDING: {
        ChallengeStatus.COMPLETED,
        ChallengeStatus.FAILED,
        ChallengeStatus.EXPIRED,
    },
}


@dataclass
class Challenge:
    """One in-flight strong authentication attempt.

    Holds only verifiable material for the selected proof method (provider
    reference, keyed digest of a one-time code, biometric nonce), never the
    raw secret. ``version`` is bumped on every persisted change so that
    compare-and-swap updates in the challenge store cannot be confused by a
    concurrent writer.
    """

    challenge_id: str
    subject_id: str
    session_id: str
    expires_at: datetime
    max_attempts: int
    status: ChallengeStatus = ChallengeStatus.INITIATED
    method: Optional[ProofMethod] = None
    attempt_count: int = 0
    created_at: datetime = field(default_factory=utc_now)
    last_attempt_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    exemption_reason: Optional[ExemptionReason] = None

    # Method specific material
    provider_reference: Optional[str] = None
    secret_digest: Optional[str] = None
    display_data: Dict[str, str] = field(default_factory=dict)

    version: int = 0

    def __post_init__(self) -> None:
        """Normalize timestamps and validate counters."""
        self.expires_at = ensure_utc(self.expires_at)
        self.created_at = ensure_utc(self.created_at)
        if self.last_attempt_at:
            self.last_attempt_at = ensure_utc(self.last_attempt_at)
        if self.completed_at:
            self.completed_at = ensure_utc(self.completed_at)

        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if not 0 <= self.attempt_count <= self.max_attempts:
            raise ValueError("attempt_count must be between 0 and max_attempts")

    @classmethod
    def create(
        cls,
        subject_id: str,
        max_attempts: int,
        ttl: timedelta,
        session_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "Challenge":
        """Create a new challenge in INITIATED state."""
        now = now or utc_now()
        challenge_id = uuid4().hex
        return cls(
            challenge_id=challenge_id,
            subject_id=subject_id,
            session_id=session_id or challenge_id,
            expires_at=now + ttl,
            max_attempts=max_attempts,
            created_at=now,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def attempts_remaining(self) -> int:
        return max(0, self.max_attempts - self.attempt_count)

    @property
    def attempts_exhausted(self) -> bool:
        return self.attempt_count >= self.max_attempts

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check expiry against ``now``. Unusable at or after ``expires_at``."""
        return (now or utc_now()) >= self.expires_at

    def seconds_until_expiry(self, now: Optional[datetime] = None) -> int:
        """Whole seconds until expiry, rounded up, never below zero."""
        delta = (self.expires_at - (now or utc_now())).total_seconds()
        return max(0, math.ceil(delta))

    def transition_to(self, status: ChallengeStatus) -> None:
        """Move to ``status`` if the state machine allows it.

        Raises:
            InvalidChallengeTransition: if the transition is not allowed
        """
        allowed = ALLOWED_TRANSITIONS.get(self.status, set())
        if status not in allowed:
            raise InvalidChallengeTransition(
                f"Cannot transition challenge from {self.status.value} to {status.value}",
                details={"challenge_id": self.challenge_id},
            )
        self.status = status

    def record_attempt(self, now: Optional[datetime] = None) -> None:
        """Charge one attempt against the budget."""
        if self.attempts_exhausted:
            raise InvalidChallengeTransition(
                "Attempt budget exhausted",
                details={"challenge_id": self.challenge_id},
            )
        self.attempt_count += 1
        self.last_attempt_at = now or utc_now()
        self.version += 1

    def complete(self, now: Optional[datetime] = None) -> None:
        self.transition_to(ChallengeStatus.COMPLETED)
        self.completed_at = now or utc_now()
        self.version += 1

    def fail(self) -> None:
        self.transition_to(ChallengeStatus.FAILED)
        self.version += 1

    def exempt(self, reason: ExemptionReason) -> None:
        self.transition_to(ChallengeStatus.EXEMPTED)
        self.exemption_reason = reason

    def to_dict(self) -> Dict[str, Any]:
        """Convert challenge to dictionary representation."""
        return {
            "challenge_id": self.challenge_id,
            "subject_id": self.subject_id,
            "session_id": self.session_id,
            "status": self.status.value,
            "method": self.method.value if self.method else None,
            "expires_at": self.expires_at.isoformat(),
            "max_attempts": self.max_attempts,
            "attempt_count": self.attempt_count,
            "created_at": self.created_at.isoformat(),
            "last_attempt_at": self.last_attempt_at.isoformat() if self.last_attempt_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "exemption_reason": self.exemption_reason.value if self.exemption_reason else None,
            "provider_reference": self.provider_reference,
            "secret_digest": self.secret_digest,
            "display_data": dict(self.display_data),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Challenge":
        """Create challenge from dictionary representation."""
        return cls(
            challenge_id=data["challenge_id"],
            subject_id=data["subject_id"],
            session_id=data["session_id"],
            status=ChallengeStatus(data["status"]),
            method=ProofMethod(data["method"]) if data.get("method") else None,
            expires_at=datetime.fromisoformat(data["expires_at"]),
            max_attempts=int(data["max_attempts"]),
            attempt_count=int(data.get("attempt_count", 0)),
            created_at=datetime.fromisoformat(data["created_at"]),
            last_attempt_at=(
                datetime.fromisoformat(data["last_attempt_at"])
                if data.get("last_attempt_at") else None
            ),
            completed_at=(
                datetime.fromisoformat(data["completed_at"])
                if data.get("completed_at") else None
            ),
            exemption_reason=(
                ExemptionReason(data["exemption_reason"])
                if data.get("exemption_reason") else None
            ),
            provider_reference=data.get("provider_reference"),
            secret_digest=data.get("secret_digest"),
            display_data=dict(data.get("display_data") or {}),
            version=int(data.get("version", 0)),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_json(cls, raw: str) -> "Challenge":
        return cls.from_dict(json.loads(raw))

    def __str__(self) -> str:
        method = self.method.value if self.method else "none"
        return f"Challenge({self.challenge_id}, {self.status.value}, {method})"

    def __repr__(self) -> str:
        return (
            f"Challenge(challenge_id={self.challenge_id!r}, subject_id={self.subject_id!r}, "
            f"status={self.status!r}, attempts={self.attempt_count}/{self.max_attempts})"
        )
