"""Subject profile data source protocol.

Supplies the transaction history, risk and enrollment facts the SCA policy
and exemption rules are evaluated against.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Protocol, Set, runtime_checkable

from ..value_objects import ProofMethod


@runtime_checkable
class SubjectProfileSource(Protocol):
    """Protocol for subject risk and history lookups."""

    async def get_daily_transaction_total(self, subject_id: str) -> Decimal:
        """Amount authorized for the subject in the trailing 24 hours."""
        ...

    async def get_daily_transaction_count(self, subject_id: str) -> int:
        """Transactions made by the subject in the trailing 24 hours."""
        ...

    async def get_account_age_days(self, subject_id: str) -> int:
        ...

    async def get_risk_score(self, subject_id: str) -> int:
        """Current risk score, 0 to 100."""
        ...

    async def get_registered_methods(self, subject_id: str) -> Set[ProofMethod]:
        ...

    async def is_biometric_enabled(self, subject_id: str) -> bool:
        ...

    async def get_contact_phone(self, subject_id: str) -> Optional[str]:
        """Phone number for one-time code delivery, if any."""
        ...

    async def get_national_id(self, subject_id: str) -> Optional[str]:
        ...

    async def get_device_public_key(self, subject_id: str) -> Optional[str]:
        """PEM encoded public key of the subject's biometric device."""
        ...

    async def is_trusted_counterparty(self, subject_id: str, counterparty_id: str) -> bool:
        ...

    async def count_successful_transactions(self, subject_id: str, counterparty_id: str) -> int:
        ...

    async def get_recent_amounts(
        self,
        subject_id: str,
        counterparty_id: str,
        since: datetime,
    ) -> List[Decimal]:
        """Amounts of transactions with the counterparty since ``since``."""
        ...

    async def is_corporate_account(self, subject_id: str) -> bool:
        ...
