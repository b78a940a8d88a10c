"""Pytest configuration and fixtures for bnpl-security tests."""

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional, Tuple
from unittest.mock import AsyncMock

import pytest
from pydantic import SecretStr

from bnpl_security.application.services import ScaOrchestrator
from bnpl_security.config.settings import SCASettings, SecuritySettings
from bnpl_security.core.protocols import ProviderHandle, ProviderOutcome
from bnpl_security.core.value_objects import ProofMethod, ProviderOutcomeStatus
from bnpl_security.infrastructure.providers import BiometricProvider, OneTimeCodeProvider
from bnpl_security.infrastructure.repositories import (
    InMemorySubjectProfileSource,
    MemoryChallengeStore,
    SubjectProfile,
)


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2025, 3, 14, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeMonotonic:
    """Controllable monotonic clock in seconds."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingChannel:
    """One-time code channel that records deliveries."""

    def __init__(self, acknowledge: bool = True):
        self.acknowledge = acknowledge
        self.sent: List[Tuple[str, str]] = []

    async def send(self, destination: str, message: str) -> bool:
        self.sent.append((destination, message))
        return self.acknowledge

    @property
    def last_code(self) -> str:
        return re.search(r"(\d{6})", self.sent[-1][1]).group(1)


SIGNING_KEY = "test-signing-key"
SIGNATURE_SECRET = "test-signature-secret"


@pytest.fixture
def sca_settings():
    """SCA settings with a fixed signing key and a short provider timeout."""
    return SCASettings(
        token_signing_key=SecretStr(SIGNING_KEY),
        provider_timeout_seconds=0.2,
    )


@pytest.fixture
def security_settings():
    """Security settings with a fixed signature secret."""
    return SecuritySettings(signature_secret=SecretStr(SIGNATURE_SECRET))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def monotonic():
    return FakeMonotonic()


@pytest.fixture
def store(monotonic):
    """In-memory challenge store driven by the fake monotonic clock."""
    return MemoryChallengeStore(clock=monotonic)


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def profiles():
    """Profile source with a few typical subjects."""
    source = InMemorySubjectProfileSource()
    source.add(SubjectProfile(
        subject_id="cust-otp",
        contact_phone="+4791234567",
    ))
    source.add(SubjectProfile(
        subject_id="cust-bankid",
        contact_phone="+4791234567",
        national_id="01019012345",
        registered_methods={ProofMethod.NATIONAL_ID, ProofMethod.MOBILE_WALLET},
    ))
    source.add(SubjectProfile(
        subject_id="cust-new",
        account_age_days=3,
        contact_phone="+4798765432",
    ))
    return source


@pytest.fixture
def national_id_provider():
    """Mock national identity provider approving every proof."""
    provider = AsyncMock()
    provider.initiate = AsyncMock(return_value=ProviderHandle(
        reference="order-ref-1",
        display_data={"auto_start_token": "ast-1"},
    ))
    provider.collect = AsyncMock(return_value=ProviderOutcome(
        status=ProviderOutcomeStatus.APPROVED,
        subject_attributes={"personal_number": "01019012345"},
    ))
    return provider


@pytest.fixture
def wallet_provider():
    """Mock mobile wallet provider."""
    provider = AsyncMock()
    provider.initiate = AsyncMock(return_value=ProviderHandle(
        reference="wallet-ref-1",
        display_data={"url": "wallet://approve/wallet-ref-1"},
    ))
    provider.collect = AsyncMock(return_value=ProviderOutcome(
        status=ProviderOutcomeStatus.PENDING,
    ))
    return provider


@pytest.fixture
def providers(channel, national_id_provider, wallet_provider):
    return {
        ProofMethod.NATIONAL_ID: national_id_provider,
        ProofMethod.MOBILE_WALLET: wallet_provider,
        ProofMethod.ONE_TIME_CODE: OneTimeCodeProvider(channel, digest_key=SIGNING_KEY),
        ProofMethod.BIOMETRIC: BiometricProvider(),
    }


@pytest.fixture
def orchestrator(store, profiles, sca_settings, providers, clock):
    """Orchestrator wired to in-memory collaborators and the fake clock."""
    return ScaOrchestrator(
        store=store,
        profiles=profiles,
        settings=sca_settings,
        providers=providers,
        clock=clock,
    )


@pytest.fixture
def high_amount():
    """Amount above the absolute SCA threshold."""
    return Decimal("750")
