"""
Shared fixtures for adversarial tests.

Attack simulations run against the real domain services and the
in-memory repository, which gives the same compare-and-swap guarantees
as the PostgreSQL adapter without needing a database.
"""

import bcrypt
import pytest

from src.adapters.repository.memory import InMemoryAccountRepository
from src.domain.ports import Account

VICTIM_EMAIL = "victim@comas.edu.gh"
VICTIM_PASSWORD = "correct-horse"


@pytest.fixture
def victim(repository: InMemoryAccountRepository, clock) -> Account:
    """Verified account with a known password and a pending reset code."""
    password_hash = bcrypt.hashpw(VICTIM_PASSWORD.encode(), bcrypt.gensalt(4)).decode()
    account = repository.create(
        Account(
            email=VICTIM_EMAIL,
            name="Victim",
            phone="+233201234567",
            password_hash=password_hash,
            is_active=True,
        )
    )
    assert account is not None
    return account


@pytest.fixture
def unverified_victim(repository: InMemoryAccountRepository, clock) -> Account:
    """Unverified account with code 123456 pending."""
    password_hash = bcrypt.hashpw(VICTIM_PASSWORD.encode(), bcrypt.gensalt(4)).decode()
    account = repository.create(
        Account(
            email=VICTIM_EMAIL,
            name="Victim",
            password_hash=password_hash,
            email_verification_code="123456",
            email_code_created_at=clock(),
        )
    )
    assert account is not None
    return account
