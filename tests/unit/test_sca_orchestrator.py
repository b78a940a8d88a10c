"""Tests for the SCA orchestrator: policy, initiation and validation."""

import asyncio
import base64
from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from bnpl_security.application.services import InitiateRequest, challenge_key
from bnpl_security.application.validators import ProofSubmission
from bnpl_security.core.exceptions import (
    AuthenticationRequired,
    ChallengeAttemptsExceeded,
    ChallengeExpired,
    ExemptionDenied,
    NoAuthenticationMethodAvailable,
    ProviderUnavailable,
)
from bnpl_security.core.protocols import ProviderHandle, ProviderOutcome
from bnpl_security.core.value_objects import (
    ChallengeStatus,
    ExemptionReason,
    ProofMethod,
    ProviderOutcomeStatus,
)
from bnpl_security.infrastructure.repositories import SubjectProfile


def _device_key_pair():
    private_key = Ed25519PrivateKey.generate()
    pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")
    return private_key, pem


def _assertion(private_key, nonce: str) -> str:
    signature = private_key.sign(nonce.encode("utf-8"))
    return base64.urlsafe_b64encode(signature).decode("ascii").rstrip("=")


class TestAuthenticationPolicy:
    """Test cases for IsAuthenticationRequired."""

    @pytest.mark.asyncio
    async def test_small_amount_for_established_subject_is_not_required(self, orchestrator):
        """Amount below every threshold does not require SCA."""
        assert await orchestrator.is_authentication_required("cust-otp", Decimal("100")) is False

    @pytest.mark.asyncio
    async def test_amount_above_threshold_is_required(self, orchestrator):
        assert await orchestrator.is_authentication_required("cust-otp", Decimal("500.01")) is True

    @pytest.mark.asyncio
    async def test_amount_at_threshold_is_not_required(self, orchestrator):
        assert await orchestrator.is_authentication_required("cust-otp", Decimal("500")) is False

    @pytest.mark.asyncio
    async def test_cumulative_daily_total_is_required(self, orchestrator, profiles):
        profiles.add(SubjectProfile(subject_id="busy", daily_transaction_total=Decimal("1900")))

        assert await orchestrator.is_authentication_required("busy", Decimal("150")) is True

    @pytest.mark.asyncio
    async def test_daily_transaction_count_is_required(self, orchestrator, profiles):
        profiles.add(SubjectProfile(subject_id="frequent", daily_transaction_count=5))

        assert await orchestrator.is_authentication_required("frequent", Decimal("10")) is True

    @pytest.mark.asyncio
    async def test_new_account_is_required(self, orchestrator):
        assert await orchestrator.is_authentication_required("cust-new", Decimal("10")) is True

    @pytest.mark.asyncio
    async def test_high_risk_score_is_required(self, orchestrator, profiles):
        profiles.add(SubjectProfile(subject_id="risky", risk_score=81))

        assert await orchestrator.is_authentication_required("risky", Decimal("10")) is True

    @pytest.mark.asyncio
    async def test_profile_failure_fails_closed(self, orchestrator, profiles):
        """Any internal error means authentication is required."""
        profiles.get_daily_transaction_total = AsyncMock(side_effect=ConnectionError("db down"))

        assert await orchestrator.is_authentication_required("cust-otp", Decimal("10")) is True


class TestExemptions:
    """Test cases for CheckExemption through the orchestrator."""

    @pytest.mark.asyncio
    async def test_low_value_is_exempt(self, orchestrator):
        result = await orchestrator.check_exemption("cust-new", Decimal("30"))

        assert result.is_exempt
        assert result.reason == ExemptionReason.LOW_VALUE

    @pytest.mark.asyncio
    async def test_recurring_pattern_with_counterparty(self, orchestrator, profiles, clock):
        profile = SubjectProfile(subject_id="subscriber")
        profile.record_transaction("merchant-1", Decimal("740"), clock.now - timedelta(days=3))
        profile.record_transaction("merchant-1", Decimal("760"), clock.now - timedelta(days=20))
        profiles.add(profile)

        result = await orchestrator.check_exemption("subscriber", Decimal("750"), "merchant-1")

        assert result.reason == ExemptionReason.RECURRING_PATTERN

    @pytest.mark.asyncio
    async def test_old_transactions_do_not_count_as_recurring(self, orchestrator, profiles, clock):
        profile = SubjectProfile(subject_id="lapsed")
        profile.record_transaction("merchant-1", Decimal("750"), clock.now - timedelta(days=40))
        profile.record_transaction("merchant-1", Decimal("750"), clock.now - timedelta(days=45))
        profiles.add(profile)

        result = await orchestrator.check_exemption("lapsed", Decimal("750"), "merchant-1")

        assert not result.is_exempt

    @pytest.mark.asyncio
    async def test_exemption_failure_is_not_exempt(self, orchestrator, profiles):
        profiles.is_corporate_account = AsyncMock(side_effect=RuntimeError("boom"))

        result = await orchestrator.check_exemption("cust-otp", Decimal("750"))

        assert not result.is_exempt

    @pytest.mark.asyncio
    async def test_assert_exempt_raises_when_not_exempt(self, orchestrator):
        with pytest.raises(ExemptionDenied):
            await orchestrator.assert_exempt("cust-otp", Decimal("750"))

    @pytest.mark.asyncio
    async def test_require_authentication_raises_when_required(self, orchestrator, high_amount):
        with pytest.raises(AuthenticationRequired):
            await orchestrator.require_authentication_or_exemption("cust-otp", high_amount)

    @pytest.mark.asyncio
    async def test_require_authentication_passes_for_exempt_transaction(self, orchestrator):
        requirement = await orchestrator.require_authentication_or_exemption(
            "cust-new", Decimal("20")
        )

        assert requirement.policy_required
        assert requirement.exemption.reason == ExemptionReason.LOW_VALUE
        assert not requirement.authentication_required


class TestMethodSelection:
    """Test cases for proof method selection."""

    @pytest.mark.asyncio
    async def test_national_id_preferred_by_default(self, orchestrator):
        assert await orchestrator.select_method("cust-bankid") == ProofMethod.NATIONAL_ID

    @pytest.mark.asyncio
    async def test_registered_preference_wins(self, orchestrator):
        method = await orchestrator.select_method("cust-bankid", ProofMethod.MOBILE_WALLET)

        assert method == ProofMethod.MOBILE_WALLET

    @pytest.mark.asyncio
    async def test_biometric_preference_ignored_when_not_enabled(self, orchestrator):
        method = await orchestrator.select_method("cust-bankid", ProofMethod.BIOMETRIC)

        assert method == ProofMethod.NATIONAL_ID

    @pytest.mark.asyncio
    async def test_one_time_code_fallback_with_contact_channel(self, orchestrator):
        assert await orchestrator.select_method("cust-otp") == ProofMethod.ONE_TIME_CODE

    @pytest.mark.asyncio
    async def test_no_method_available(self, orchestrator):
        with pytest.raises(NoAuthenticationMethodAvailable):
            await orchestrator.select_method("unknown-subject")


class TestInitiate:
    """Test cases for challenge initiation."""

    @pytest.mark.asyncio
    async def test_not_required_returns_exempted_challenge(self, orchestrator, channel):
        challenge = await orchestrator.initiate(InitiateRequest("cust-otp", Decimal("20")))

        assert challenge.status == ChallengeStatus.EXEMPTED
        assert challenge.exemption_reason == ExemptionReason.NOT_REQUIRED
        assert channel.sent == []

    @pytest.mark.asyncio
    async def test_exempt_transaction_returns_exempted_with_reason(self, orchestrator, channel):
        challenge = await orchestrator.initiate(InitiateRequest("cust-new", Decimal("25")))

        assert challenge.status == ChallengeStatus.EXEMPTED
        assert challenge.exemption_reason == ExemptionReason.LOW_VALUE
        assert channel.sent == []

    @pytest.mark.asyncio
    async def test_one_time_code_challenge(self, orchestrator, channel, clock, high_amount):
        challenge = await orchestrator.initiate(InitiateRequest("cust-otp", high_amount))

        assert challenge.status == ChallengeStatus.PENDING
        assert challenge.method == ProofMethod.ONE_TIME_CODE
        assert challenge.expires_at == clock.now + timedelta(minutes=5)
        assert len(channel.sent) == 1
        assert channel.sent[0][0] == "+4791234567"
        assert channel.last_code not in challenge.secret_digest

    @pytest.mark.asyncio
    async def test_challenge_is_persisted(self, orchestrator, store, high_amount):
        challenge = await orchestrator.initiate(InitiateRequest("cust-otp", high_amount))

        stored = await orchestrator.get_challenge(challenge.challenge_id, "cust-otp")

        assert stored is not None
        assert stored.status == ChallengeStatus.PENDING
        assert await store.get(challenge_key("cust-otp", challenge.challenge_id)) is not None

    @pytest.mark.asyncio
    async def test_national_id_challenge_calls_provider_once(
        self, orchestrator, national_id_provider, clock, high_amount
    ):
        challenge = await orchestrator.initiate(InitiateRequest("cust-bankid", high_amount))

        national_id_provider.initiate.assert_awaited_once()
        proof_request = national_id_provider.initiate.await_args.args[0]
        assert proof_request.national_id == "01019012345"
        assert challenge.provider_reference == "order-ref-1"
        assert challenge.display_data == {"auto_start_token": "ast-1"}
        assert challenge.expires_at == clock.now + timedelta(minutes=10)

    @pytest.mark.asyncio
    async def test_provider_failure_is_retried_once(
        self, orchestrator, national_id_provider, high_amount
    ):
        national_id_provider.initiate.side_effect = [
            ConnectionError("reset"),
            ProviderHandle(reference="order-ref-2"),
        ]

        challenge = await orchestrator.initiate(InitiateRequest("cust-bankid", high_amount))

        assert national_id_provider.initiate.await_count == 2
        assert challenge.provider_reference == "order-ref-2"

    @pytest.mark.asyncio
    async def test_provider_timeout_leaves_no_state(
        self, orchestrator, national_id_provider, store, high_amount
    ):
        """A timed out initiate fails outright with nothing persisted."""

        async def hang(request):
            await asyncio.sleep(5)

        national_id_provider.initiate.side_effect = hang

        with pytest.raises(ProviderUnavailable) as exc_info:
            await orchestrator.initiate(InitiateRequest("cust-bankid", high_amount))

        assert exc_info.value.details["retryable"] is True
        assert national_id_provider.initiate.await_count == 2
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_unacknowledged_code_delivery_fails(self, orchestrator, channel, store, high_amount):
        channel.acknowledge = False

        with pytest.raises(ProviderUnavailable):
            await orchestrator.initiate(InitiateRequest("cust-otp", high_amount))

        assert len(store) == 0


class TestValidate:
    """Test cases for challenge validation."""

    @pytest.fixture
    def start_otp(self, orchestrator, high_amount):
        async def start():
            return await orchestrator.initiate(InitiateRequest("cust-otp", high_amount))
        return start

    @pytest.mark.asyncio
    async def test_correct_code_completes_and_issues_token(self, orchestrator, channel, start_otp):
        challenge = await start_otp()

        result = await orchestrator.validate(
            challenge.challenge_id, ProofSubmission("cust-otp", one_time_code=channel.last_code)
        )

        assert result.status == ChallengeStatus.COMPLETED
        assert result.is_valid and result.fresh
        assert result.token
        assert await orchestrator.validate_token(result.token, "cust-otp")

    @pytest.mark.asyncio
    async def test_wrong_code_leaves_challenge_pending(self, orchestrator, channel, start_otp):
        challenge = await start_otp()

        wrong = await orchestrator.validate(
            challenge.challenge_id, ProofSubmission("cust-otp", one_time_code="000000x")
        )
        right = await orchestrator.validate(
            challenge.challenge_id, ProofSubmission("cust-otp", one_time_code=channel.last_code)
        )

        assert wrong.status == ChallengeStatus.PENDING
        assert wrong.error_code == "PROOF_REJECTED"
        assert wrong.attempts_remaining == 2
        assert right.status == ChallengeStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_attempt_after_budget_is_exceeded_even_with_correct_code(
        self, orchestrator, channel, start_otp
    ):
        challenge = await start_otp()
        wrong = ProofSubmission("cust-otp", one_time_code="bad")

        results = [await orchestrator.validate(challenge.challenge_id, wrong) for _ in range(3)]
        extra = await orchestrator.validate(
            challenge.challenge_id, ProofSubmission("cust-otp", one_time_code=channel.last_code)
        )

        assert [r.status for r in results] == [
            ChallengeStatus.PENDING, ChallengeStatus.PENDING, ChallengeStatus.FAILED
        ]
        assert extra.status == ChallengeStatus.FAILED
        assert extra.error_code == "CHALLENGE_ATTEMPTS_EXCEEDED"
        assert extra.token is None
        with pytest.raises(ChallengeAttemptsExceeded):
            extra.raise_for_error()

        stored = await orchestrator.get_challenge(challenge.challenge_id, "cust-otp")
        assert stored.attempt_count == stored.max_attempts == 3

    @pytest.mark.asyncio
    async def test_expired_challenge_is_rejected_lazily(
        self, orchestrator, channel, store, clock, start_otp
    ):
        """Expiry is enforced on read even when the store still holds the entry."""
        challenge = await start_otp()
        clock.advance(minutes=5)

        result = await orchestrator.validate(
            challenge.challenge_id, ProofSubmission("cust-otp", one_time_code=channel.last_code)
        )

        assert result.status == ChallengeStatus.EXPIRED
        assert result.token is None
        assert await store.get(challenge_key("cust-otp", challenge.challenge_id)) is None
        with pytest.raises(ChallengeExpired):
            result.raise_for_error()

    @pytest.mark.asyncio
    async def test_unknown_challenge_reads_as_expired(self, orchestrator):
        result = await orchestrator.validate("does-not-exist", ProofSubmission("cust-otp", "123456"))

        assert result.status == ChallengeStatus.EXPIRED
        assert result.error_code == "CHALLENGE_EXPIRED"

    @pytest.mark.asyncio
    async def test_other_subject_cannot_see_challenge(self, orchestrator, channel, start_otp):
        challenge = await start_otp()

        result = await orchestrator.validate(
            challenge.challenge_id, ProofSubmission("cust-bankid", one_time_code=channel.last_code)
        )

        assert result.status == ChallengeStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_completed_challenge_is_stable(self, orchestrator, channel, start_otp):
        challenge = await start_otp()
        proof = ProofSubmission("cust-otp", one_time_code=channel.last_code)
        await orchestrator.validate(challenge.challenge_id, proof)

        again = await orchestrator.validate(challenge.challenge_id, proof)
        wrong = await orchestrator.validate(
            challenge.challenge_id, ProofSubmission("cust-otp", one_time_code="bad")
        )

        for result in (again, wrong):
            assert result.status == ChallengeStatus.COMPLETED
            assert result.fresh is False
            assert result.token is None
        stored = await orchestrator.get_challenge(challenge.challenge_id, "cust-otp")
        assert stored.attempt_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_validation_issues_one_token(self, orchestrator, channel, start_otp):
        challenge = await start_otp()
        proof = ProofSubmission("cust-otp", one_time_code=channel.last_code)

        first, second = await asyncio.gather(
            orchestrator.validate(challenge.challenge_id, proof),
            orchestrator.validate(challenge.challenge_id, proof),
        )

        assert {first.status, second.status} == {ChallengeStatus.COMPLETED}
        assert sorted([first.fresh, second.fresh]) == [False, True]
        assert len([r for r in (first, second) if r.token]) == 1

    @pytest.mark.asyncio
    async def test_refused_call_during_final_attempt_keeps_it_completable(
        self, orchestrator, national_id_provider, high_amount
    ):
        """A call refused while the last attempt is in flight does not fail the challenge."""
        outcomes = [
            ProviderOutcomeStatus.REJECTED,
            ProviderOutcomeStatus.REJECTED,
            ProviderOutcomeStatus.APPROVED,
        ]

        async def collect(reference):
            status = outcomes.pop(0)
            await asyncio.sleep(0.01)
            return ProviderOutcome(status=status)

        national_id_provider.collect.side_effect = collect
        challenge = await orchestrator.initiate(InitiateRequest("cust-bankid", high_amount))
        proof = ProofSubmission("cust-bankid")
        for _ in range(2):
            await orchestrator.validate(challenge.challenge_id, proof)

        first, second = await asyncio.gather(
            orchestrator.validate(challenge.challenge_id, proof),
            orchestrator.validate(challenge.challenge_id, proof),
        )

        assert {first.status, second.status} == {
            ChallengeStatus.COMPLETED, ChallengeStatus.FAILED
        }
        completed = first if first.status == ChallengeStatus.COMPLETED else second
        refused = second if completed is first else first
        assert completed.fresh is True
        assert completed.token
        assert refused.error_code == "CHALLENGE_ATTEMPTS_EXCEEDED"
        assert refused.token is None
        assert national_id_provider.collect.await_count == 3

        stored = await orchestrator.get_challenge(challenge.challenge_id, "cust-bankid")
        assert stored.status == ChallengeStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_rejected_earlier_attempt_does_not_fail_later_one(
        self, orchestrator, national_id_provider, high_amount
    ):
        """Only the call holding the last attempt can move the challenge to FAILED."""
        delays = [0, 0, 0.05]
        outcomes = [
            ProviderOutcomeStatus.REJECTED,
            ProviderOutcomeStatus.REJECTED,
            ProviderOutcomeStatus.APPROVED,
        ]

        async def collect(reference):
            delay, status = delays.pop(0), outcomes.pop(0)
            await asyncio.sleep(delay)
            return ProviderOutcome(status=status)

        national_id_provider.collect.side_effect = collect
        challenge = await orchestrator.initiate(InitiateRequest("cust-bankid", high_amount))
        proof = ProofSubmission("cust-bankid")
        await orchestrator.validate(challenge.challenge_id, proof)

        rejected, approved = await asyncio.gather(
            orchestrator.validate(challenge.challenge_id, proof),
            orchestrator.validate(challenge.challenge_id, proof),
        )

        assert rejected.status == ChallengeStatus.PENDING
        assert rejected.error_code == "PROOF_REJECTED"
        assert approved.status == ChallengeStatus.COMPLETED
        assert approved.fresh is True

    @pytest.mark.asyncio
    async def test_exempted_challenge_validation_is_stable(self, orchestrator):
        challenge = await orchestrator.initiate(InitiateRequest("cust-otp", Decimal("20")))

        result = await orchestrator.validate(challenge.challenge_id, ProofSubmission("cust-otp"))

        assert result.status == ChallengeStatus.EXEMPTED
        assert result.token is None


class TestPushMethods:
    """Test cases for provider collected proofs."""

    @pytest.mark.asyncio
    async def test_approved_national_id(self, orchestrator, national_id_provider, high_amount):
        challenge = await orchestrator.initiate(InitiateRequest("cust-bankid", high_amount))

        result = await orchestrator.validate(challenge.challenge_id, ProofSubmission("cust-bankid"))

        national_id_provider.collect.assert_awaited_once_with("order-ref-1")
        assert result.status == ChallengeStatus.COMPLETED
        assert result.token

    @pytest.mark.asyncio
    async def test_pending_wallet_proof(self, orchestrator, high_amount):
        challenge = await orchestrator.initiate(InitiateRequest(
            "cust-bankid", high_amount, preferred_method=ProofMethod.MOBILE_WALLET
        ))

        result = await orchestrator.validate(challenge.challenge_id, ProofSubmission("cust-bankid"))

        assert result.status == ChallengeStatus.PENDING
        assert result.error_code == "PROOF_PENDING"
        assert result.attempts_remaining == 2

    @pytest.mark.asyncio
    async def test_rejected_proof(self, orchestrator, national_id_provider, high_amount):
        national_id_provider.collect.return_value = ProviderOutcome(
            status=ProviderOutcomeStatus.REJECTED
        )
        challenge = await orchestrator.initiate(InitiateRequest("cust-bankid", high_amount))

        result = await orchestrator.validate(challenge.challenge_id, ProofSubmission("cust-bankid"))

        assert result.status == ChallengeStatus.PENDING
        assert result.error_code == "PROOF_REJECTED"

    @pytest.mark.asyncio
    async def test_collect_failure_is_retryable_and_charged(
        self, orchestrator, national_id_provider, high_amount
    ):
        national_id_provider.collect.side_effect = ConnectionError("provider down")
        challenge = await orchestrator.initiate(InitiateRequest("cust-bankid", high_amount))

        with pytest.raises(ProviderUnavailable):
            await orchestrator.validate(challenge.challenge_id, ProofSubmission("cust-bankid"))

        national_id_provider.collect.assert_awaited_once()
        stored = await orchestrator.get_challenge(challenge.challenge_id, "cust-bankid")
        assert stored.attempt_count == 1
        assert stored.status == ChallengeStatus.PENDING

    @pytest.mark.asyncio
    async def test_abandoned_validation_still_charges_attempt(
        self, orchestrator, national_id_provider, high_amount
    ):
        """Cancelling a validation does not refund the attempt."""
        started = asyncio.Event()

        async def slow_collect(reference):
            started.set()
            await asyncio.sleep(5)

        national_id_provider.collect.side_effect = slow_collect
        challenge = await orchestrator.initiate(InitiateRequest("cust-bankid", high_amount))

        task = asyncio.create_task(
            orchestrator.validate(challenge.challenge_id, ProofSubmission("cust-bankid"))
        )
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        stored = await orchestrator.get_challenge(challenge.challenge_id, "cust-bankid")
        assert stored.attempt_count == 1

    @pytest.mark.asyncio
    async def test_abandoned_final_attempt_refuses_later_calls(
        self, orchestrator, national_id_provider, high_amount
    ):
        national_id_provider.collect.return_value = ProviderOutcome(
            status=ProviderOutcomeStatus.REJECTED
        )
        challenge = await orchestrator.initiate(InitiateRequest("cust-bankid", high_amount))
        proof = ProofSubmission("cust-bankid")
        for _ in range(2):
            await orchestrator.validate(challenge.challenge_id, proof)

        started = asyncio.Event()

        async def slow_collect(reference):
            started.set()
            await asyncio.sleep(5)

        national_id_provider.collect.side_effect = slow_collect
        task = asyncio.create_task(orchestrator.validate(challenge.challenge_id, proof))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        later = await orchestrator.validate(challenge.challenge_id, proof)

        assert later.status == ChallengeStatus.FAILED
        assert later.error_code == "CHALLENGE_ATTEMPTS_EXCEEDED"
        stored = await orchestrator.get_challenge(challenge.challenge_id, "cust-bankid")
        assert stored.status == ChallengeStatus.PENDING
        assert stored.attempts_remaining == 0


class TestBiometric:
    """Test cases for device biometric assertions."""

    @pytest.fixture
    def device_key(self, profiles):
        private_key, pem = _device_key_pair()
        profiles.add(SubjectProfile(
            subject_id="cust-bio",
            registered_methods={ProofMethod.BIOMETRIC},
            biometric_enabled=True,
            device_public_key=pem,
        ))
        return private_key

    @pytest.mark.asyncio
    async def test_signed_nonce_completes(self, orchestrator, device_key, high_amount):
        challenge = await orchestrator.initiate(InitiateRequest(
            "cust-bio", high_amount, preferred_method=ProofMethod.BIOMETRIC
        ))
        nonce = challenge.display_data["challenge"]

        result = await orchestrator.validate(
            challenge.challenge_id,
            ProofSubmission("cust-bio", biometric_assertion=_assertion(device_key, nonce)),
        )

        assert challenge.method == ProofMethod.BIOMETRIC
        assert result.status == ChallengeStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_signature_over_other_data_is_rejected(self, orchestrator, device_key, high_amount):
        challenge = await orchestrator.initiate(InitiateRequest(
            "cust-bio", high_amount, preferred_method=ProofMethod.BIOMETRIC
        ))

        result = await orchestrator.validate(
            challenge.challenge_id,
            ProofSubmission("cust-bio", biometric_assertion=_assertion(device_key, "replayed")),
        )

        assert result.status == ChallengeStatus.PENDING
        assert result.error_code == "PROOF_REJECTED"
