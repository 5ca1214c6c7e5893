"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the account record and the interfaces (ports) that
the domain requires from infrastructure. Adapters implement these protocols.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol


class Role(str, Enum):
    """
    Account roles.

    Self-service registration always yields STUDENT. STAFF and ADMIN
    accounts are provisioned administratively.
    """

    STUDENT = "STUDENT"
    STAFF = "STAFF"
    ADMIN = "ADMIN"


@dataclass
class Account:
    """
    Persisted identity record, one per email.

    Pair invariants (enforced by the lifecycle services and by table
    constraints in the PostgreSQL adapter):
    - email_verification_code / email_code_created_at are both set or both None
    - password_reset_code / reset_code_created_at are both set or both None
    - is_active implies email_verification_code is None
    """

    email: str
    password_hash: str
    name: str | None = None
    phone: str | None = None
    role: Role = Role.STUDENT
    id: int | None = None
    is_active: bool = False
    login_retries: int = 0
    account_locked_until: datetime | None = None
    email_verification_code: str | None = None
    email_code_created_at: datetime | None = None
    email_verification_retries: int = 0
    password_reset_code: str | None = None
    reset_code_created_at: datetime | None = None
    created_at: datetime | None = None


# Fields that update_by_email() may touch. email and id are immutable.
MUTABLE_FIELDS = frozenset(
    {
        "name",
        "phone",
        "role",
        "password_hash",
        "is_active",
        "login_retries",
        "account_locked_until",
        "email_verification_code",
        "email_code_created_at",
        "email_verification_retries",
        "password_reset_code",
        "reset_code_created_at",
    }
)


@dataclass(frozen=True)
class EmailMessage:
    """Transactional email rendered by the gateway from a named template."""

    to: str
    subject: str
    template: str
    context: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome reported by a notification gateway."""

    accepted: tuple[str, ...] = ()
    rejected: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.rejected


class AccountRepository(Protocol):
    """Port interface for account persistence."""

    def find_by_email(self, email: str) -> Account | None:
        """Return the account for a normalized email, or None."""
        ...

    def create(self, account: Account) -> Account | None:
        """
        Atomically insert a new account.

        Args:
            account: Account to persist (id and created_at are assigned)

        Returns:
            The stored account, or None if the email is already taken
        """
        ...

    def update_by_email(
        self,
        email: str,
        changes: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> bool:
        """
        Conditionally update account fields.

        The update applies only if every field in ``expected`` still holds
        its given value when the write happens (compare-and-swap). This is
        the only primitive the lifecycle services use for read-modify-write
        on counters.

        Args:
            email: Normalized email address
            changes: Field name -> new value (names from MUTABLE_FIELDS)
            expected: Field name -> value that must currently be stored

        Returns:
            True if a row was updated, False if the account is missing or
            an expected value no longer matches
        """
        ...

    def delete_by_email(self, email: str) -> bool:
        """Delete the account. Returns True if a row was removed."""
        ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    def send(self, message: EmailMessage) -> DeliveryResult:
        """
        Dispatch a templated email and report rejected recipients.

        Raises:
            GatewayFailure: If the gateway is misconfigured or unreachable
        """
        ...


class SmsSender(Protocol):
    """Port interface for SMS delivery."""

    def send(self, recipients: Sequence[str], message: str) -> DeliveryResult:
        """
        Dispatch a text message.

        Raises:
            InvalidRecipients: If no usable recipient is given
            GatewayFailure: If the gateway is misconfigured or unreachable
        """
        ...
