"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock for expiry and lockout scenarios
- Recording notification doubles
- Domain services wired to the in-memory repository
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import pytest

from src.adapters.repository.memory import InMemoryAccountRepository
from src.domain.credentials import CredentialService
from src.domain.lockout import LockoutPolicy
from src.domain.ports import DeliveryResult, EmailMessage
from src.domain.tokens import TokenIssuer
from src.domain.verification import VerificationService

TEST_EMAIL_PATTERN = r"^[a-z0-9A-Z]+@comas\.edu\.gh$"
TEST_JWT_SECRET = "test-secret-key-with-enough-length-for-hs256"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@dataclass
class RecordingEmailSender:
    """EmailSender double that keeps every message."""

    reject: bool = False
    messages: list[EmailMessage] = field(default_factory=list)

    def send(self, message: EmailMessage) -> DeliveryResult:
        self.messages.append(message)
        if self.reject:
            return DeliveryResult(rejected=(message.to,))
        return DeliveryResult(accepted=(message.to,))

    @property
    def last_code(self) -> str:
        return self.messages[-1].context["verification_code"]


@dataclass
class RecordingSmsSender:
    """SmsSender double that keeps every message."""

    sent: list[tuple[list[str], str]] = field(default_factory=list)

    def send(self, recipients, message: str) -> DeliveryResult:
        self.sent.append((list(recipients), message))
        return DeliveryResult(accepted=tuple(recipients))

    @property
    def last_code(self) -> str:
        match = re.search(r"\b(\d{6})\b", self.sent[-1][1])
        assert match is not None
        return match.group(1)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def sms_sender() -> RecordingSmsSender:
    return RecordingSmsSender()


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(secret=TEST_JWT_SECRET)


@pytest.fixture
def verification_service(
    repository: InMemoryAccountRepository,
    email_sender: RecordingEmailSender,
    clock: FakeClock,
) -> VerificationService:
    return VerificationService(
        repository=repository,
        email_sender=email_sender,
        base_url="http://testserver",
        clock=clock,
    )


@pytest.fixture
def credential_service(
    repository: InMemoryAccountRepository,
    verification_service: VerificationService,
    sms_sender: RecordingSmsSender,
    token_issuer: TokenIssuer,
    clock: FakeClock,
) -> CredentialService:
    # Cost 4 keeps the suite fast; production cost is covered separately.
    return CredentialService(
        repository=repository,
        verification=verification_service,
        sms_sender=sms_sender,
        token_issuer=token_issuer,
        email_pattern=TEST_EMAIL_PATTERN,
        lockout=LockoutPolicy(max_attempts=3, lock_duration=timedelta(hours=1)),
        bcrypt_cost=4,
        clock=clock,
    )
