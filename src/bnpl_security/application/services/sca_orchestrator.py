"""Strong Customer Authentication orchestrator.

Decides whether a transaction needs strong authentication, applies the
exemption rules, selects a proof method, drives the proof provider and owns
the challenge state machine. Challenge state lives in the challenge store and
every update goes through compare-and-swap, so concurrent validations of the
same challenge cannot lose an attempt or issue two tokens.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict, Mapping, Optional, Tuple

from ...config.settings import SCASettings
from ...core.entities import Challenge
from ...core.exceptions import (
    AuthenticationRequired,
    ChallengeAttemptsExceeded,
    ChallengeExpired,
    ChallengeStoreContention,
    ChallengeStoreError,
    ExemptionDenied,
    NoAuthenticationMethodAvailable,
    ProviderUnavailable,
    ValidationError,
)
from ...core.protocols import (
    ChallengeStore,
    ProofProvider,
    ProofRequest,
    ProviderHandle,
    SubjectProfileSource,
)
from ...core.value_objects import (
    ChallengeStatus,
    ExemptionReason,
    ExemptionResult,
    ProofMethod,
)
from ...utils.datetime import utc_now
from ..validators import (
    BiometricAssertionValidator,
    OneTimeCodeValidator,
    ProofSubmission,
    ProofValidator,
    ProviderCollectValidator,
)
from .exemption_engine import ExemptionEngine, ExemptionFacts
from .token_service import TokenService

logger = logging.getLogger(__name__)

METHOD_FALLBACK_ORDER = (
    ProofMethod.NATIONAL_ID,
    ProofMethod.MOBILE_WALLET,
    ProofMethod.ONE_TIME_CODE,
    ProofMethod.BIOMETRIC,
)

ATTEMPTS_EXCEEDED_CODE = ChallengeAttemptsExceeded.default_code
EXPIRED_CODE = ChallengeExpired.default_code


def challenge_key(subject_id: str, challenge_id: str) -> str:
    return f"sca:challenge:{subject_id}:{challenge_id}"


@dataclass(frozen=True)
class InitiateRequest:
    """Caller request to start strong authentication for a transaction."""

    subject_id: str
    amount: Decimal
    payment_method: str = "bnpl"
    counterparty_id: Optional[str] = None
    preferred_method: Optional[ProofMethod] = None
    session_id: Optional[str] = None
    currency: str = "NOK"
    client_ip: Optional[str] = None


@dataclass(frozen=True)
class ScaRequirement:
    """Combined outcome of the policy check and the exemption rules."""

    policy_required: bool
    exemption: ExemptionResult

    @property
    def authentication_required(self) -> bool:
        return self.policy_required and not self.exemption.is_exempt


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of one validation call.

    ``fresh`` is True only for the call that moved the challenge to
    COMPLETED; only that call carries a token.
    """

    challenge_id: str
    status: ChallengeStatus
    is_valid: bool
    fresh: bool = False
    token: Optional[str] = None
    error_code: Optional[str] = None
    message: Optional[str] = None
    attempts_remaining: int = 0
    details: Dict[str, str] = field(default_factory=dict)

    def raise_for_error(self) -> None:
        """Raise the matching exception for expired or exhausted challenges."""
        if self.status == ChallengeStatus.EXPIRED:
            raise ChallengeExpired(self.message or "Challenge expired or not found")
        if self.status == ChallengeStatus.FAILED:
            raise ChallengeAttemptsExceeded(
                self.message or "Maximum authentication attempts exceeded",
                details={"challenge_id": self.challenge_id},
            )


class ScaOrchestrator:
    """Coordinates policy, exemptions, proof providers and challenge state."""

    def __init__(
        self,
        store: ChallengeStore,
        profiles: SubjectProfileSource,
        settings: SCASettings,
        providers: Mapping[ProofMethod, ProofProvider],
        token_service: Optional[TokenService] = None,
        exemption_engine: Optional[ExemptionEngine] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._profiles = profiles
        self._settings = settings
        self._clock = clock
        self._providers: Dict[ProofMethod, ProofProvider] = {}
        for method, provider in providers.items():
            if not isinstance(method, ProofMethod):
                raise ValueError(f"Unsupported proof method: {method!r}")
            self._providers[method] = provider
        self._validators = self._build_validators()
        self.tokens = token_service or TokenService(store, settings, clock=clock)
        self.exemptions = exemption_engine or ExemptionEngine(settings)

    def _build_validators(self) -> Dict[ProofMethod, ProofValidator]:
        validators: Dict[ProofMethod, ProofValidator] = {}
        for method, provider in self._providers.items():
            if method.is_push:
                validators[method] = ProviderCollectValidator(
                    provider, self._settings.provider_timeout_seconds
                )
            elif method == ProofMethod.ONE_TIME_CODE:
                validators[method] = OneTimeCodeValidator(
                    self._settings.token_signing_key.get_secret_value()
                )
            elif method == ProofMethod.BIOMETRIC:
                validators[method] = BiometricAssertionValidator(self._profiles)
        return validators

    @property
    def available_methods(self) -> Tuple[ProofMethod, ...]:
        return tuple(m for m in METHOD_FALLBACK_ORDER if m in self._providers)

    # Policy

    async def is_authentication_required(
        self,
        subject_id: str,
        amount: Decimal,
        payment_method: str = "bnpl",
    ) -> bool:
        """Evaluate the SCA policy. Any internal error means required."""
        settings = self._settings
        try:
            if amount > settings.threshold_amount:
                logger.info(f"SCA required for {subject_id}: amount {amount} above threshold")
                return True

            daily_total = await self._profiles.get_daily_transaction_total(subject_id)
            if daily_total + amount > settings.daily_cumulative_threshold:
                logger.info(f"SCA required for {subject_id}: daily cumulative limit exceeded")
                return True

            daily_count = await self._profiles.get_daily_transaction_count(subject_id)
            if daily_count >= settings.daily_transaction_count_threshold:
                logger.info(f"SCA required for {subject_id}: daily transaction count limit")
                return True

            account_age = await self._profiles.get_account_age_days(subject_id)
            if account_age < settings.new_customer_threshold_days:
                logger.info(f"SCA required for {subject_id}: new account ({account_age} days)")
                return True

            risk_score = await self._profiles.get_risk_score(subject_id)
            if risk_score > settings.risk_score_threshold:
                logger.info(f"SCA required for {subject_id}: risk score {risk_score}")
                return True

            logger.debug(f"SCA not required for {subject_id} ({payment_method}, {amount})")
            return False
        except Exception as e:
            logger.error(
                f"SCA policy check failed for {subject_id}, requiring authentication: "
                f"{type(e).__name__}: {e}"
            )
            return True

    async def _gather_exemption_facts(
        self,
        subject_id: str,
        amount: Decimal,
        counterparty_id: Optional[str],
    ) -> ExemptionFacts:
        is_corporate = await self._profiles.is_corporate_account(subject_id)
        if not counterparty_id:
            return ExemptionFacts(is_corporate=is_corporate)

        since = self._clock() - timedelta(days=self._settings.recurring_lookback_days)
        trusted, successes, recent = await asyncio.gather(
            self._profiles.is_trusted_counterparty(subject_id, counterparty_id),
            self._profiles.count_successful_transactions(subject_id, counterparty_id),
            self._profiles.get_recent_amounts(subject_id, counterparty_id, since),
        )
        return ExemptionFacts(
            is_trusted_counterparty=trusted,
            successful_transactions=successes,
            recent_amounts=tuple(recent),
            is_corporate=is_corporate,
        )

    async def check_exemption(
        self,
        subject_id: str,
        amount: Decimal,
        counterparty_id: Optional[str] = None,
    ) -> ExemptionResult:
        """Evaluate exemptions in order. Any internal error means not exempt."""
        try:
            if self.exemptions.is_low_value(amount):
                result = self.exemptions.evaluate(amount)
            else:
                facts = await self._gather_exemption_facts(subject_id, amount, counterparty_id)
                result = self.exemptions.evaluate(amount, facts)
        except Exception as e:
            logger.error(
                f"Exemption check failed for {subject_id}, not exempting: "
                f"{type(e).__name__}: {e}"
            )
            return ExemptionResult.not_exempt()

        if result.is_exempt:
            logger.info(f"SCA exemption {result.reason.value} applied for {subject_id}")
        return result

    async def evaluate_requirement(
        self,
        subject_id: str,
        amount: Decimal,
        payment_method: str = "bnpl",
        counterparty_id: Optional[str] = None,
    ) -> ScaRequirement:
        """Run the policy check and, if it requires SCA, the exemption rules."""
        if amount < 0:
            raise ValidationError("Amount must not be negative")
        required = await self.is_authentication_required(subject_id, amount, payment_method)
        if not required:
            return ScaRequirement(policy_required=False, exemption=ExemptionResult.not_exempt())
        exemption = await self.check_exemption(subject_id, amount, counterparty_id)
        return ScaRequirement(policy_required=True, exemption=exemption)

    async def require_authentication_or_exemption(
        self,
        subject_id: str,
        amount: Decimal,
        payment_method: str = "bnpl",
        counterparty_id: Optional[str] = None,
    ) -> ScaRequirement:
        """Raise AuthenticationRequired unless the transaction may proceed."""
        requirement = await self.evaluate_requirement(
            subject_id, amount, payment_method, counterparty_id
        )
        if requirement.authentication_required:
            raise AuthenticationRequired(
                "Strong customer authentication is required",
                details={"subject_id": subject_id},
            )
        return requirement

    async def assert_exempt(
        self,
        subject_id: str,
        amount: Decimal,
        counterparty_id: Optional[str] = None,
    ) -> ExemptionResult:
        """Raise ExemptionDenied unless an exemption rule matches."""
        result = await self.check_exemption(subject_id, amount, counterparty_id)
        if not result.is_exempt:
            raise ExemptionDenied(
                "Transaction does not qualify for an exemption",
                details={"subject_id": subject_id},
            )
        return result

    # Method selection

    async def select_method(
        self,
        subject_id: str,
        preferred: Optional[ProofMethod] = None,
    ) -> ProofMethod:
        """Pick the proof method for a subject.

        The preference wins when usable, then national identity, mobile
        wallet, one-time code, and biometric only when enabled.
        """
        registered = await self._profiles.get_registered_methods(subject_id)
        biometric_enabled = await self._profiles.is_biometric_enabled(subject_id)
        phone = await self._profiles.get_contact_phone(subject_id)

        def usable(method: ProofMethod) -> bool:
            if method not in self._providers:
                return False
            if method == ProofMethod.ONE_TIME_CODE:
                return bool(phone)
            if method == ProofMethod.BIOMETRIC:
                return biometric_enabled and method in registered
            return method in registered

        if preferred is not None and usable(preferred):
            return preferred
        for method in METHOD_FALLBACK_ORDER:
            if usable(method):
                return method
        raise NoAuthenticationMethodAvailable(
            "No authentication method available for subject",
            details={"subject_id": subject_id},
        )

    async def _build_proof_request(self, request: InitiateRequest, method: ProofMethod) -> ProofRequest:
        phone = None
        national_id = None
        if method in (ProofMethod.ONE_TIME_CODE, ProofMethod.MOBILE_WALLET):
            phone = await self._profiles.get_contact_phone(request.subject_id)
        if method == ProofMethod.NATIONAL_ID:
            national_id = await self._profiles.get_national_id(request.subject_id)
        return ProofRequest(
            subject_id=request.subject_id,
            method=method,
            amount=request.amount,
            currency=request.currency,
            counterparty_id=request.counterparty_id,
            national_id=national_id,
            phone_number=phone,
            client_ip=request.client_ip,
            display_text=f"Confirm payment of {request.amount} {request.currency}",
        )

    async def _initiate_with_provider(
        self,
        method: ProofMethod,
        proof_request: ProofRequest,
        correlation_id: Optional[str],
    ) -> ProviderHandle:
        """Call the provider with a bounded timeout, retrying on failure."""
        provider = self._providers[method]
        attempts = 1 + self._settings.provider_initiate_retries
        last_error: Optional[BaseException] = None

        for attempt in range(1, attempts + 1):
            try:
                return await asyncio.wait_for(
                    provider.initiate(proof_request),
                    timeout=self._settings.provider_timeout_seconds,
                )
            except asyncio.TimeoutError as e:
                last_error = e
                logger.warning(
                    f"[{correlation_id}] {method.value} provider initiate timed out "
                    f"(attempt {attempt}/{attempts})"
                )
            except ValidationError:
                raise
            except Exception as e:
                last_error = e
                logger.warning(
                    f"[{correlation_id}] {method.value} provider initiate failed "
                    f"(attempt {attempt}/{attempts}): {type(e).__name__}"
                )

        raise ProviderUnavailable(
            f"{method.value} provider is unavailable", method=method.value
        ) from last_error

    # Challenge lifecycle

    async def _exempted_challenge(
        self,
        request: InitiateRequest,
        reason: ExemptionReason,
        now: datetime,
        correlation_id: Optional[str],
    ) -> Challenge:
        ttl = timedelta(minutes=self._settings.exempted_challenge_ttl_minutes)
        challenge = Challenge.create(
            subject_id=request.subject_id,
            max_attempts=self._settings.max_authentication_attempts,
            ttl=ttl,
            session_id=request.session_id,
            now=now,
        )
        challenge.exempt(reason)
        await self._store.set_with_ttl(
            challenge_key(challenge.subject_id, challenge.challenge_id),
            challenge.to_json(),
            int(ttl.total_seconds()),
        )
        self._log_outcome(correlation_id, challenge, "exempted", reason=reason.value)
        return challenge

    async def initiate(
        self,
        request: InitiateRequest,
        correlation_id: Optional[str] = None,
    ) -> Challenge:
        """Start strong authentication for a transaction.

        Returns a terminal EXEMPTED challenge when authentication is not
        required or an exemption applies. Otherwise returns a PENDING
        challenge persisted with its expiry. Nothing is persisted when the
        provider cannot be reached.

        Raises:
            ProviderUnavailable: provider failed or timed out after retry
            NoAuthenticationMethodAvailable: subject has no usable method
        """
        now = self._clock()
        requirement = await self.evaluate_requirement(
            request.subject_id, request.amount, request.payment_method, request.counterparty_id
        )
        if not requirement.policy_required:
            return await self._exempted_challenge(
                request, ExemptionReason.NOT_REQUIRED, now, correlation_id
            )
        if requirement.exemption.is_exempt:
            return await self._exempted_challenge(
                request, requirement.exemption.reason, now, correlation_id
            )

        method = await self.select_method(request.subject_id, request.preferred_method)
        expiry_minutes = (
            self._settings.one_time_code_expiry_minutes
            if method == ProofMethod.ONE_TIME_CODE
            else self._settings.challenge_expiry_minutes
        )
        ttl = timedelta(minutes=expiry_minutes)
        challenge = Challenge.create(
            subject_id=request.subject_id,
            max_attempts=self._settings.max_authentication_attempts,
            ttl=ttl,
            session_id=request.session_id,
            now=now,
        )
        challenge.method = method

        proof_request = await self._build_proof_request(request, method)
        handle = await self._initiate_with_provider(method, proof_request, correlation_id)

        challenge.provider_reference = handle.reference
        challenge.secret_digest = handle.secret_digest
        challenge.display_data = dict(handle.display_data)
        challenge.transition_to(ChallengeStatus.PENDING)

        created = await self._store.compare_and_swap(
            challenge_key(challenge.subject_id, challenge.challenge_id),
            None,
            challenge.to_json(),
            int(ttl.total_seconds()),
        )
        if not created:
            raise ChallengeStoreContention("Challenge identifier collision")

        self._log_outcome(correlation_id, challenge, "initiated")
        return challenge

    async def get_challenge(self, challenge_id: str, subject_id: str) -> Optional[Challenge]:
        """Read a challenge, enforcing expiry lazily. None when expired or unknown."""
        key = challenge_key(subject_id, challenge_id)
        raw = await self._store.get(key)
        if raw is None:
            return None
        challenge = self._load(raw, key)
        if not challenge.is_terminal and challenge.is_expired(self._clock()):
            await self._store.delete(key)
            return None
        return challenge

    def _load(self, raw: str, key: str) -> Challenge:
        try:
            return Challenge.from_json(raw)
        except (ValueError, KeyError, TypeError) as e:
            raise ChallengeStoreError(f"Corrupt challenge entry at {key}: {e}")

    async def _update(
        self,
        key: str,
        mutate: Callable[[Challenge], Optional[Challenge]],
    ) -> Tuple[Optional[Challenge], bool]:
        """Apply ``mutate`` to the stored challenge with compare-and-swap.

        ``mutate`` returns the changed challenge, or None to leave it as is.
        Returns the resulting challenge (None when absent) and whether a
        change was written.
        """
        for _ in range(self._settings.max_store_retries):
            raw = await self._store.get(key)
            if raw is None:
                return None, False
            challenge = self._load(raw, key)
            updated = mutate(challenge)
            if updated is None:
                return challenge, False
            ttl = max(1, updated.seconds_until_expiry(self._clock()))
            if await self._store.compare_and_swap(key, raw, updated.to_json(), ttl):
                return updated, True
        raise ChallengeStoreContention(f"Too many concurrent updates for {key}")

    def _charge_attempt(self, challenge: Challenge) -> Optional[Challenge]:
        now = self._clock()
        if challenge.is_terminal or challenge.is_expired(now) or challenge.attempts_exhausted:
            return None
        challenge.record_attempt(now)
        return challenge

    def _complete(self, challenge: Challenge) -> Optional[Challenge]:
        now = self._clock()
        if challenge.is_terminal or challenge.is_expired(now):
            return None
        challenge.complete(now)
        return challenge

    def _fail_after_final_attempt(
        self,
        attempt_number: int,
    ) -> Callable[[Challenge], Optional[Challenge]]:
        """Fail the challenge only for the call that held the last attempt."""
        def mutate(challenge: Challenge) -> Optional[Challenge]:
            if challenge.is_terminal or challenge.is_expired(self._clock()):
                return None
            if attempt_number < challenge.max_attempts:
                return None
            challenge.fail()
            return challenge
        return mutate

    async def validate(
        self,
        challenge_id: str,
        proof: ProofSubmission,
        correlation_id: Optional[str] = None,
    ) -> ValidationResult:
        """Validate a proof against a challenge.

        The attempt is charged in the store before the proof is checked, so
        abandoning the call does not refund it.

        Raises:
            ProviderUnavailable: outcome could not be collected from the provider
        """
        key = challenge_key(proof.subject_id, challenge_id)

        charged, applied = await self._update(key, self._charge_attempt)
        if charged is None:
            return self._expired_result(challenge_id, correlation_id)
        if not applied:
            return await self._refuse(key, charged, correlation_id)

        validator = self._validators.get(charged.method)
        if validator is None:
            raise ProviderUnavailable(
                "Proof method is not configured",
                method=charged.method.value if charged.method else None,
            )

        outcome = await validator.validate(charged, proof)

        if outcome.is_approved:
            final, applied = await self._update(key, self._complete)
            if final is None:
                return self._expired_result(challenge_id, correlation_id)
            if not applied:
                return await self._refuse(key, final, correlation_id)
            token = await self.tokens.issue_token(final.subject_id, final.session_id)
            self._log_outcome(correlation_id, final, "completed")
            return ValidationResult(
                challenge_id=challenge_id,
                status=ChallengeStatus.COMPLETED,
                is_valid=True,
                fresh=True,
                token=token,
                attempts_remaining=final.attempts_remaining,
            )

        final, applied = await self._update(
            key, self._fail_after_final_attempt(charged.attempt_count)
        )
        if final is None:
            return self._expired_result(challenge_id, correlation_id)
        if final.is_terminal or final.is_expired(self._clock()):
            if applied:
                self._log_outcome(correlation_id, final, "failed")
            return await self._refuse(key, final, correlation_id)

        error_code = "PROOF_PENDING" if outcome.is_pending else "PROOF_REJECTED"
        self._log_outcome(correlation_id, final, error_code.lower())
        return ValidationResult(
            challenge_id=challenge_id,
            status=final.status,
            is_valid=False,
            error_code=error_code,
            message=(
                "Proof not yet confirmed" if outcome.is_pending else "Proof was rejected"
            ),
            attempts_remaining=final.attempts_remaining,
        )

    async def _refuse(
        self,
        key: str,
        challenge: Challenge,
        correlation_id: Optional[str],
    ) -> ValidationResult:
        """Result for a challenge that cannot take another attempt."""
        if challenge.is_terminal:
            return self._terminal_result(challenge)

        if challenge.is_expired(self._clock()):
            await self._store.delete(key)
            return self._expired_result(challenge.challenge_id, correlation_id)

        # Budget used up while still pending. The final attempt may still be
        # in flight, so the state is left for that call to settle.
        self._log_outcome(correlation_id, challenge, "attempts_exceeded")
        return ValidationResult(
            challenge_id=challenge.challenge_id,
            status=ChallengeStatus.FAILED,
            is_valid=False,
            error_code=ATTEMPTS_EXCEEDED_CODE,
            message="Maximum authentication attempts exceeded",
        )

    def _terminal_result(self, challenge: Challenge) -> ValidationResult:
        if challenge.status == ChallengeStatus.COMPLETED:
            return ValidationResult(
                challenge_id=challenge.challenge_id,
                status=ChallengeStatus.COMPLETED,
                is_valid=True,
                fresh=False,
                message="Challenge already completed",
                attempts_remaining=challenge.attempts_remaining,
            )
        if challenge.status == ChallengeStatus.EXEMPTED:
            return ValidationResult(
                challenge_id=challenge.challenge_id,
                status=ChallengeStatus.EXEMPTED,
                is_valid=False,
                message="Challenge is exempt from authentication",
                details={"reason": challenge.exemption_reason.value}
                if challenge.exemption_reason else {},
            )
        if challenge.status == ChallengeStatus.FAILED:
            return ValidationResult(
                challenge_id=challenge.challenge_id,
                status=ChallengeStatus.FAILED,
                is_valid=False,
                error_code=ATTEMPTS_EXCEEDED_CODE,
                message="Maximum authentication attempts exceeded",
            )
        return ValidationResult(
            challenge_id=challenge.challenge_id,
            status=ChallengeStatus.EXPIRED,
            is_valid=False,
            error_code=EXPIRED_CODE,
            message="Challenge expired or not found",
        )

    def _expired_result(self, challenge_id: str, correlation_id: Optional[str]) -> ValidationResult:
        logger.info(
            f"[{correlation_id}] SCA challenge {challenge_id} expired or not found",
            extra={"structured_data": {
                "event": "sca_challenge",
                "outcome": "expired",
                "challenge_id": challenge_id,
                "correlation_id": correlation_id,
            }},
        )
        return ValidationResult(
            challenge_id=challenge_id,
            status=ChallengeStatus.EXPIRED,
            is_valid=False,
            error_code=EXPIRED_CODE,
            message="Challenge expired or not found",
        )

    def _log_outcome(
        self,
        correlation_id: Optional[str],
        challenge: Challenge,
        outcome: str,
        **fields,
    ) -> None:
        logger.info(
            f"[{correlation_id}] SCA challenge {challenge.challenge_id} {outcome} "
            f"for subject {challenge.subject_id}",
            extra={"structured_data": {
                "event": "sca_challenge",
                "outcome": outcome,
                "challenge_id": challenge.challenge_id,
                "subject_id": challenge.subject_id,
                "method": challenge.method.value if challenge.method else None,
                "status": challenge.status.value,
                "attempt_count": challenge.attempt_count,
                "correlation_id": correlation_id,
                **fields,
            }},
        )

    # Tokens

    async def validate_token(self, token: str, subject_id: str) -> bool:
        return await self.tokens.validate_token(token, subject_id)

    async def revoke_token(self, subject_id: str, session_id: str) -> bool:
        return await self.tokens.revoke_token(subject_id, session_id)
