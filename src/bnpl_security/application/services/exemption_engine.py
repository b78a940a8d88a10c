"""Exemption rule engine.

Pure decision component: given the transaction amount and the facts gathered
about the subject and counterparty, decide whether strong authentication may
be skipped. Rules are evaluated in a fixed order and the first match wins.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Sequence

from ...config.settings import SCASettings
from ...core.value_objects import ExemptionReason, ExemptionResult


@dataclass(frozen=True)
class ExemptionFacts:
    """Subject and counterparty facts the exemption rules evaluate."""

    is_trusted_counterparty: bool = False
    successful_transactions: int = 0
    recent_amounts: Sequence[Decimal] = field(default_factory=tuple)
    is_corporate: bool = False


class ExemptionEngine:
    """Evaluates low-value, trusted, recurring and corporate exemptions."""

    def __init__(self, settings: SCASettings):
        self._settings = settings

    def is_low_value(self, amount: Decimal) -> bool:
        """Amount at or under the low-value ceiling."""
        return amount <= self._settings.low_value_exemption_threshold

    def is_trusted_counterparty(self, facts: ExemptionFacts) -> bool:
        return (
            facts.is_trusted_counterparty
            or facts.successful_transactions >= self._settings.trusted_counterparty_min_transactions
        )

    def is_similar_amount(self, amount: Decimal, other: Decimal) -> bool:
        """Amounts within the recurring tolerance of each other."""
        tolerance = abs(amount) * self._settings.recurring_amount_tolerance
        return abs(other - amount) <= tolerance

    def is_recurring(self, amount: Decimal, facts: ExemptionFacts) -> bool:
        matches = sum(1 for other in facts.recent_amounts if self.is_similar_amount(amount, other))
        return matches >= self._settings.recurring_min_transactions

    def is_corporate(self, amount: Decimal, facts: ExemptionFacts) -> bool:
        return facts.is_corporate and amount <= self._settings.corporate_exemption_threshold

    def evaluate(self, amount: Decimal, facts: Optional[ExemptionFacts] = None) -> ExemptionResult:
        """Evaluate the rules in order.

        Args:
            amount: Transaction amount
            facts: Subject and counterparty facts, only needed past the
                low-value rule

        Returns:
            First matching exemption, or a non-exempt result
        """
        if self.is_low_value(amount):
            return ExemptionResult.exempt(ExemptionReason.LOW_VALUE)

        facts = facts or ExemptionFacts()
        if self.is_trusted_counterparty(facts):
            return ExemptionResult.exempt(ExemptionReason.TRUSTED_COUNTERPARTY)
        if self.is_recurring(amount, facts):
            return ExemptionResult.exempt(ExemptionReason.RECURRING_PATTERN)
        if self.is_corporate(amount, facts):
            return ExemptionResult.exempt(ExemptionReason.CORPORATE)
        return ExemptionResult.not_exempt()
