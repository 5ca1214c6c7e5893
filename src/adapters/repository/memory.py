"""
In-memory repository adapter - Implements AccountRepository protocol.

Process-local storage for development and tests. A single lock makes
create() and the conditional update_by_email() atomic, mirroring the
guarantees of the PostgreSQL adapter.
"""

import itertools
import threading
from collections.abc import Mapping
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from src.domain.ports import MUTABLE_FIELDS, Account


class InMemoryAccountRepository:
    """
    Implements AccountRepository protocol with a dict keyed by email.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Accounts are copied on the way in and out so callers never share
    state with the store.
    """

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def find_by_email(self, email: str) -> Account | None:
        with self._lock:
            account = self._accounts.get(email)
            return replace(account) if account is not None else None

    def create(self, account: Account) -> Account | None:
        with self._lock:
            if account.email in self._accounts:
                return None
            stored = replace(
                account,
                id=next(self._ids),
                created_at=datetime.now(timezone.utc),
            )
            self._accounts[account.email] = stored
            return replace(stored)

    def update_by_email(
        self,
        email: str,
        changes: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> bool:
        unknown = (set(changes) | set(expected or {})) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        with self._lock:
            account = self._accounts.get(email)
            if account is None:
                return False
            for name, value in (expected or {}).items():
                if getattr(account, name) != value:
                    return False
            self._accounts[email] = replace(account, **changes)
            return True

    def delete_by_email(self, email: str) -> bool:
        with self._lock:
            return self._accounts.pop(email, None) is not None
