"""
Unit tests for InMemoryAccountRepository.

Verifies the adapter honours the AccountRepository contract:
- create() refuses duplicate emails
- update_by_email() is a compare-and-swap
- returned accounts are copies
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest

from src.adapters.repository.memory import InMemoryAccountRepository
from src.domain.ports import Account, Role


def make_account(email: str = "esi@comas.edu.gh") -> Account:
    return Account(email=email, password_hash="$2b$04$hash", name="Esi")


class TestCreate:
    def test_create_assigns_id_and_timestamp(self, repository: InMemoryAccountRepository) -> None:
        stored = repository.create(make_account())
        assert stored is not None
        assert stored.id == 1
        assert stored.created_at is not None
        assert stored.role is Role.STUDENT

    def test_duplicate_returns_none(self, repository: InMemoryAccountRepository) -> None:
        repository.create(make_account())
        assert repository.create(make_account()) is None

    def test_ids_are_unique(self, repository: InMemoryAccountRepository) -> None:
        first = repository.create(make_account("a@comas.edu.gh"))
        second = repository.create(make_account("b@comas.edu.gh"))
        assert first.id != second.id

    def test_concurrent_creates_exactly_one_succeeds(self) -> None:
        repository = InMemoryAccountRepository()
        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(lambda _: repository.create(make_account()), range(20)))
        assert sum(r is not None for r in results) == 1


class TestFind:
    def test_missing_returns_none(self, repository: InMemoryAccountRepository) -> None:
        assert repository.find_by_email("nobody@comas.edu.gh") is None

    def test_returns_copy(self, repository: InMemoryAccountRepository) -> None:
        repository.create(make_account())
        fetched = repository.find_by_email("esi@comas.edu.gh")
        fetched.login_retries = 99
        assert repository.find_by_email("esi@comas.edu.gh").login_retries == 0


class TestUpdate:
    def test_unconditional_update(self, repository: InMemoryAccountRepository) -> None:
        repository.create(make_account())
        assert repository.update_by_email("esi@comas.edu.gh", {"login_retries": 2}) is True
        assert repository.find_by_email("esi@comas.edu.gh").login_retries == 2

    def test_expected_match_applies(self, repository: InMemoryAccountRepository) -> None:
        repository.create(make_account())
        applied = repository.update_by_email(
            "esi@comas.edu.gh", {"login_retries": 1}, expected={"login_retries": 0}
        )
        assert applied is True

    def test_expected_mismatch_does_not_apply(self, repository: InMemoryAccountRepository) -> None:
        repository.create(make_account())
        applied = repository.update_by_email(
            "esi@comas.edu.gh", {"login_retries": 5}, expected={"login_retries": 3}
        )
        assert applied is False
        assert repository.find_by_email("esi@comas.edu.gh").login_retries == 0

    def test_expected_none_compares(self, repository: InMemoryAccountRepository) -> None:
        repository.create(make_account())
        locked = datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert repository.update_by_email(
            "esi@comas.edu.gh", {"account_locked_until": locked}, expected={"account_locked_until": None}
        )
        assert not repository.update_by_email(
            "esi@comas.edu.gh", {"account_locked_until": None}, expected={"account_locked_until": None}
        )

    def test_missing_account(self, repository: InMemoryAccountRepository) -> None:
        assert repository.update_by_email("nobody@comas.edu.gh", {"login_retries": 1}) is False

    def test_immutable_field_rejected(self, repository: InMemoryAccountRepository) -> None:
        repository.create(make_account())
        with pytest.raises(ValueError):
            repository.update_by_email("esi@comas.edu.gh", {"email": "other@comas.edu.gh"})

    @pytest.mark.parametrize("field", ["email", "id", "no_such_field"])
    def test_unknown_expected_field_rejected(
        self, repository: InMemoryAccountRepository, field: str
    ) -> None:
        repository.create(make_account())
        with pytest.raises(ValueError):
            repository.update_by_email(
                "esi@comas.edu.gh", {"login_retries": 1}, expected={field: "esi@comas.edu.gh"}
            )
        assert repository.find_by_email("esi@comas.edu.gh").login_retries == 0

    def test_concurrent_increments_are_not_lost(self) -> None:
        """Each increment is a CAS retried until it lands."""
        repository = InMemoryAccountRepository()
        repository.create(make_account())

        def increment(_: int) -> None:
            while True:
                current = repository.find_by_email("esi@comas.edu.gh").login_retries
                if repository.update_by_email(
                    "esi@comas.edu.gh",
                    {"login_retries": current + 1},
                    expected={"login_retries": current},
                ):
                    return

        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(increment, range(50)))

        assert repository.find_by_email("esi@comas.edu.gh").login_retries == 50


class TestDelete:
    def test_delete_existing(self, repository: InMemoryAccountRepository) -> None:
        repository.create(make_account())
        assert repository.delete_by_email("esi@comas.edu.gh") is True
        assert repository.find_by_email("esi@comas.edu.gh") is None

    def test_delete_missing(self, repository: InMemoryAccountRepository) -> None:
        assert repository.delete_by_email("esi@comas.edu.gh") is False
