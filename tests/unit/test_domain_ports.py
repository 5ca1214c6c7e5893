"""
Unit tests for domain ports and exceptions.

Tests verify:
- The account record defaults match a freshly registered student
- Exceptions carry the right ErrorKind
- Domain purity (zero web framework or driver imports)
"""

import subprocess
from dataclasses import fields
from enum import Enum
from pathlib import Path

import pytest

from src.domain import exceptions as exc
from src.domain.exceptions import ErrorKind, IdentityError
from src.domain.ports import MUTABLE_FIELDS, Account, DeliveryResult, EmailMessage, Role

DOMAIN_DIR = Path(__file__).resolve().parents[2] / "src" / "domain"


class TestRole:
    def test_role_is_string_enum(self) -> None:
        assert issubclass(Role, Enum)
        assert Role("STUDENT") is Role.STUDENT
        assert Role.STAFF == "STAFF"

    def test_roles(self) -> None:
        assert {r.value for r in Role} == {"STUDENT", "STAFF", "ADMIN"}


class TestAccount:
    def test_new_account_defaults(self) -> None:
        """A bare account is an unverified, unlocked student."""
        account = Account(email="kofi@comas.edu.gh", password_hash="$2b$04$x")

        assert account.role is Role.STUDENT
        assert account.is_active is False
        assert account.login_retries == 0
        assert account.account_locked_until is None
        assert account.email_verification_code is None
        assert account.email_verification_retries == 0
        assert account.password_reset_code is None
        assert account.id is None

    def test_identity_fields_are_not_mutable(self) -> None:
        assert "email" not in MUTABLE_FIELDS
        assert "id" not in MUTABLE_FIELDS
        assert "created_at" not in MUTABLE_FIELDS

    def test_every_other_field_is_mutable(self) -> None:
        names = {f.name for f in fields(Account)}
        assert MUTABLE_FIELDS == names - {"email", "id", "created_at"}


class TestNotificationTypes:
    def test_delivery_ok_without_rejections(self) -> None:
        assert DeliveryResult(accepted=("a@comas.edu.gh",)).ok is True

    def test_delivery_not_ok_with_rejections(self) -> None:
        assert DeliveryResult(rejected=("a@comas.edu.gh",)).ok is False

    def test_email_message_is_frozen(self) -> None:
        message = EmailMessage(to="a@comas.edu.gh", subject="s", template="t")
        with pytest.raises(AttributeError):
            message.to = "b@comas.edu.gh"  # type: ignore[misc]


class TestExceptions:
    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (exc.MissingCredentials, ErrorKind.INVALID_INPUT),
            (exc.PasswordTooLong, ErrorKind.INVALID_INPUT),
            (exc.NoPendingCode, ErrorKind.INVALID_INPUT),
            (exc.MissingResetCode, ErrorKind.INVALID_INPUT),
            (exc.MissingPhoneNumber, ErrorKind.INVALID_INPUT),
            (exc.InvalidRecipients, ErrorKind.INVALID_INPUT),
            (exc.EmailAlreadyRegistered, ErrorKind.CONFLICT),
            (exc.AlreadyVerified, ErrorKind.CONFLICT),
            (exc.ConcurrentModification, ErrorKind.CONFLICT),
            (exc.AccountNotFound, ErrorKind.NOT_FOUND),
            (exc.AccountLocked, ErrorKind.FORBIDDEN),
            (exc.VerificationAttemptsExhausted, ErrorKind.FORBIDDEN),
            (exc.RoleForbidden, ErrorKind.FORBIDDEN),
            (exc.InvalidCredentials, ErrorKind.UNAUTHORIZED),
            (exc.InvalidVerificationCode, ErrorKind.UNAUTHORIZED),
            (exc.InvalidResetCode, ErrorKind.UNAUTHORIZED),
            (exc.IncorrectOldPassword, ErrorKind.UNAUTHORIZED),
            (exc.InvalidToken, ErrorKind.UNAUTHORIZED),
            (exc.EmailDomainRejected, ErrorKind.PRECONDITION_FAILED),
            (exc.NotificationRejected, ErrorKind.PRECONDITION_FAILED),
            (exc.VerificationCodeExpired, ErrorKind.EXPIRED),
            (exc.ResetCodeExpired, ErrorKind.EXPIRED),
            (exc.GatewayFailure, ErrorKind.INTERNAL_FAILURE),
        ],
    )
    def test_kind(self, error: type[IdentityError], kind: ErrorKind) -> None:
        instance = error()
        assert isinstance(instance, IdentityError)
        assert instance.kind is kind

    def test_default_message(self) -> None:
        error = exc.EmailAlreadyRegistered()
        assert error.message == "User already exists"
        assert str(error) == "User already exists"

    def test_custom_message(self) -> None:
        error = exc.AccountLocked("Maximum login attempts exceeded")
        assert error.message == "Maximum login attempts exceeded"
        assert error.kind is ErrorKind.FORBIDDEN

    def test_base_error_is_internal_failure(self) -> None:
        assert IdentityError().kind is ErrorKind.INTERNAL_FAILURE


class TestDomainPurity:
    """The domain layer stays free of web framework and driver imports."""

    @pytest.mark.parametrize(
        "pattern",
        ["from fastapi", "import fastapi", "from pydantic", "import pydantic", "psycopg", "httpx"],
    )
    def test_no_framework_imports_in_domain(self, pattern: str) -> None:
        result = subprocess.run(
            ["grep", "-r", "--include=*.py", pattern, str(DOMAIN_DIR)],
            capture_output=True,
            text=True,
        )
        assert result.returncode != 0, f"Forbidden import found: {result.stdout}"
