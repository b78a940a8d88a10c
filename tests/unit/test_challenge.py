"""Tests for the Challenge entity."""

from datetime import datetime, timedelta, timezone

import pytest

from bnpl_security.core.entities import Challenge
from bnpl_security.core.exceptions import InvalidChallengeTransition
from bnpl_security.core.value_objects import ChallengeStatus, ExemptionReason, ProofMethod

NOW = datetime(2025, 3, 14, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def challenge():
    return Challenge.create("cust-1", max_attempts=3, ttl=timedelta(minutes=10), now=NOW)


class TestChallengeCreation:
    """Test cases for challenge creation."""

    def test_create_sets_expiry_and_defaults(self, challenge):
        assert challenge.status == ChallengeStatus.INITIATED
        assert challenge.expires_at == NOW + timedelta(minutes=10)
        assert challenge.attempt_count == 0
        assert challenge.session_id == challenge.challenge_id

    def test_create_keeps_explicit_session(self):
        challenge = Challenge.create(
            "cust-1", max_attempts=3, ttl=timedelta(minutes=1), session_id="sess-9", now=NOW
        )

        assert challenge.session_id == "sess-9"

    def test_identifiers_are_unique(self):
        ids = {
            Challenge.create("cust-1", 3, timedelta(minutes=1), now=NOW).challenge_id
            for _ in range(50)
        }

        assert len(ids) == 50

    def test_invalid_attempt_budget_rejected(self):
        with pytest.raises(ValueError):
            Challenge(
                challenge_id="c", subject_id="s", session_id="s",
                expires_at=NOW, max_attempts=0,
            )

    def test_naive_timestamps_become_utc(self):
        challenge = Challenge(
            challenge_id="c", subject_id="s", session_id="s",
            expires_at=datetime(2025, 1, 1, 12, 0), max_attempts=1,
        )

        assert challenge.expires_at.tzinfo is not None


class TestChallengeLifecycle:
    """Test cases for state transitions and attempt accounting."""

    def test_pending_to_completed(self, challenge):
        challenge.transition_to(ChallengeStatus.PENDING)
        challenge.record_attempt(NOW)
        challenge.complete(NOW)

        assert challenge.status == ChallengeStatus.COMPLETED
        assert challenge.is_terminal
        assert challenge.completed_at == NOW

    def test_terminal_states_cannot_change(self, challenge):
        challenge.transition_to(ChallengeStatus.PENDING)
        challenge.fail()

        for status in ChallengeStatus:
            with pytest.raises(InvalidChallengeTransition):
                challenge.transition_to(status)

    def test_initiated_cannot_complete(self, challenge):
        with pytest.raises(InvalidChallengeTransition):
            challenge.complete(NOW)

    def test_exempt_records_reason(self, challenge):
        challenge.exempt(ExemptionReason.LOW_VALUE)

        assert challenge.status == ChallengeStatus.EXEMPTED
        assert challenge.exemption_reason == ExemptionReason.LOW_VALUE

    def test_attempts_never_exceed_budget(self, challenge):
        for _ in range(3):
            challenge.record_attempt(NOW)

        assert challenge.attempts_exhausted
        assert challenge.attempts_remaining == 0
        with pytest.raises(InvalidChallengeTransition):
            challenge.record_attempt(NOW)
        assert challenge.attempt_count == 3

    def test_every_change_bumps_version(self, challenge):
        challenge.transition_to(ChallengeStatus.PENDING)
        challenge.record_attempt(NOW)
        challenge.complete(NOW)

        assert challenge.version == 2

    def test_expiry_is_inclusive(self, challenge):
        assert not challenge.is_expired(challenge.expires_at - timedelta(seconds=1))
        assert challenge.is_expired(challenge.expires_at)

    def test_seconds_until_expiry_rounds_up(self, challenge):
        assert challenge.seconds_until_expiry(NOW + timedelta(seconds=599, milliseconds=500)) == 1
        assert challenge.seconds_until_expiry(NOW + timedelta(hours=1)) == 0


class TestChallengeSerialization:
    """Test cases for the stored JSON form."""

    def test_json_round_trip_preserves_state(self, challenge):
        challenge.method = ProofMethod.ONE_TIME_CODE
        challenge.secret_digest = "digest"
        challenge.display_data = {"hint": "sms"}
        challenge.transition_to(ChallengeStatus.PENDING)
        challenge.record_attempt(NOW)

        restored = Challenge.from_json(challenge.to_json())

        assert restored.to_dict() == challenge.to_dict()

    def test_json_is_deterministic(self, challenge):
        assert challenge.to_json() == Challenge.from_json(challenge.to_json()).to_json()

    def test_repr_hides_secret_material(self, challenge):
        challenge.secret_digest = "very-secret-digest"

        assert "very-secret-digest" not in repr(challenge)
        assert "very-secret-digest" not in str(challenge)
