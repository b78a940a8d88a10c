"""In-memory subject profile source.

Backs the SubjectProfileSource protocol with plain records. Used for
development and tests, and as the default when no external source is wired.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Set, Tuple

from ...core.value_objects import ProofMethod


@dataclass
class SubjectProfile:
    """Risk, enrollment and history facts for one subject.

    Unknown subjects get neutral defaults: an established account, medium
    risk and no history.
    """

    subject_id: str
    daily_transaction_total: Decimal = Decimal("0")
    daily_transaction_count: int = 0
    account_age_days: int = 365
    risk_score: int = 50
    registered_methods: Set[ProofMethod] = field(default_factory=set)
    biometric_enabled: bool = False
    contact_phone: Optional[str] = None
    national_id: Optional[str] = None
    device_public_key: Optional[str] = None
    is_corporate: bool = False
    trusted_counterparties: Set[str] = field(default_factory=set)
    successful_transactions: Dict[str, int] = field(default_factory=dict)
    transaction_history: List[Tuple[str, Decimal, datetime]] = field(default_factory=list)

    def record_transaction(self, counterparty_id: str, amount: Decimal, at: datetime) -> None:
        """Record a successful transaction with a counterparty."""
        self.transaction_history.append((counterparty_id, amount, at))
        self.successful_transactions[counterparty_id] = (
            self.successful_transactions.get(counterparty_id, 0) + 1
        )


class InMemorySubjectProfileSource:
    """Dictionary backed subject profile source."""

    def __init__(self, profiles: Optional[Dict[str, SubjectProfile]] = None):
        self._profiles: Dict[str, SubjectProfile] = dict(profiles or {})

    def add(self, profile: SubjectProfile) -> None:
        self._profiles[profile.subject_id] = profile

    def _profile(self, subject_id: str) -> SubjectProfile:
        return self._profiles.get(subject_id) or SubjectProfile(subject_id=subject_id)

    async def get_daily_transaction_total(self, subject_id: str) -> Decimal:
        return self._profile(subject_id).daily_transaction_total

    async def get_daily_transaction_count(self, subject_id: str) -> int:
        return self._profile(subject_id).daily_transaction_count

    async def get_account_age_days(self, subject_id: str) -> int:
        return self._profile(subject_id).account_age_days

    async def get_risk_score(self, subject_id: str) -> int:
        return self._profile(subject_id).risk_score

    async def get_registered_methods(self, subject_id: str) -> Set[ProofMethod]:
        return set(self._profile(subject_id).registered_methods)

    async def is_biometric_enabled(self, subject_id: str) -> bool:
        return self._profile(subject_id).biometric_enabled

    async def get_contact_phone(self, subject_id: str) -> Optional[str]:
        return self._profile(subject_id).contact_phone

    async def get_national_id(self, subject_id: str) -> Optional[str]:
        return self._profile(subject_id).national_id

    async def get_device_public_key(self, subject_id: str) -> Optional[str]:
        return self._profile(subject_id).device_public_key

    async def is_trusted_counterparty(self, subject_id: str, counterparty_id: str) -> bool:
        return counterparty_id in self._profile(subject_id).trusted_counterparties

    async def count_successful_transactions(self, subject_id: str, counterparty_id: str) -> int:
        return self._profile(subject_id).successful_transactions.get(counterparty_id, 0)

    async def get_recent_amounts(
        self,
        subject_id: str,
        counterparty_id: str,
        since: datetime,
    ) -> List[Decimal]:
        return [
            amount
            for party, amount, at in self._profile(subject_id).transaction_history
            if party == counterparty_id and at >= since
        ]

    async def is_corporate_account(self, subject_id: str) -> bool:
        return self._profile(subject_id).is_corporate
