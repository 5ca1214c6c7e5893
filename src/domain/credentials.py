"""
Credential domain service - registration, login and password reset.

Login evaluation
================

1. Lockout pre-check: an open lock (account_locked_until in the future)
   denies the attempt before the password is looked at.
2. Password check (bcrypt, constant time).
3. Failure: login_retries + 1; reaching max_attempts opens a lock for
   lock_duration. Success: counters reset and a session token is issued.

Unknown emails and wrong passwords both yield InvalidCredentials, and an
unknown email still pays for a bcrypt comparison.

Password reset
==============

A reset needs the old password plus a 6-digit code sent by SMS to the
registered phone. Codes live for reset_code_ttl and are cleared once used.
"""

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from .codes import codes_match, issue_code, utcnow
from .concurrency import retry_on_conflict
from .exceptions import (
    AccountLocked,
    AccountNotFound,
    ConcurrentModification,
    EmailAlreadyRegistered,
    EmailDomainRejected,
    GatewayFailure,
    IdentityError,
    IncorrectOldPassword,
    InvalidCredentials,
    InvalidInput,
    InvalidResetCode,
    MissingCredentials,
    MissingPhoneNumber,
    MissingResetCode,
    NotificationRejected,
    ResetCodeExpired,
    RoleForbidden,
)
from .lockout import LockoutPolicy, LockoutReason
from .passwords import check_password, dummy_hash, hash_password
from .ports import Account, AccountRepository, Role, SmsSender
from .tokens import TokenIssuer
from .verification import VerificationService, normalize_email

logger = logging.getLogger(__name__)

RESET_SMS_TEMPLATE = (
    "Hello! Requested password reset code: {code}. Ignore if you did not request."
)


@dataclass(frozen=True)
class AccountSummary:
    """Public projection of an account. Never carries the password hash."""

    id: int | None
    email: str
    name: str | None
    role: Role

    @classmethod
    def from_account(cls, account: Account) -> "AccountSummary":
        return cls(id=account.id, email=account.email, name=account.name, role=account.role)


@dataclass(frozen=True)
class RegistrationResult:
    account: AccountSummary
    verification_sent: bool


@dataclass(frozen=True)
class LoginResult:
    token: str
    role: Role


@dataclass
class CredentialService:
    """
    Domain service for credentials.

    Orchestrates registration, login attempt evaluation (with lockout),
    reset code issuance over SMS and password reset.
    """

    repository: AccountRepository
    verification: VerificationService
    sms_sender: SmsSender
    token_issuer: TokenIssuer
    email_pattern: str = r"^[a-z0-9A-Z]+@comas\.edu\.gh$"
    lockout: LockoutPolicy = field(default_factory=LockoutPolicy)
    reset_code_ttl: timedelta = timedelta(hours=1)
    bcrypt_cost: int = 10
    clock: Callable[[], datetime] = field(default=utcnow)

    def __post_init__(self) -> None:
        # Dummy hash for this cost is built here, not on the first miss.
        dummy_hash(self.bcrypt_cost)

    def register(
        self, email: str, name: str | None, password: str, phone: str | None = None
    ) -> RegistrationResult:
        """
        Register a self-service (STUDENT) account and email a verification code.

        A rejected verification email does not undo the registration; the
        result reports verification_sent=False so the caller can offer a
        resend.

        Raises:
            MissingCredentials: Email or password missing
            EmailAlreadyRegistered: Email already has an account
            EmailDomainRejected: Email fails the institutional pattern
        """
        if not email or not password:
            raise MissingCredentials()

        normalized_email = normalize_email(email)
        if self.repository.find_by_email(normalized_email) is not None:
            raise EmailAlreadyRegistered()

        self._enforce_email_domain(normalized_email)

        password_hash = hash_password(password, self.bcrypt_cost)
        code = self.verification.new_code()

        account = self.repository.create(
            Account(
                email=normalized_email,
                name=name,
                phone=phone,
                role=Role.STUDENT,
                password_hash=password_hash,
                email_verification_code=code.value,
                email_code_created_at=code.created_at,
            )
        )
        if account is None:
            # Lost an insert race against a concurrent registration.
            raise EmailAlreadyRegistered()

        logger.info("Registered account %s (id=%s)", account.email, account.id)

        try:
            self.verification.send(account.email, account.name, code.value)
        except (NotificationRejected, GatewayFailure):
            logger.warning("Verification email for %s not delivered, resend required", account.email)
            sent = False
        else:
            sent = True

        return RegistrationResult(account=AccountSummary.from_account(account), verification_sent=sent)

    def login(self, email: str, password: str) -> LoginResult:
        """
        Evaluate a login attempt.

        Raises:
            MissingCredentials: Email or password missing
            AccountLocked: Lock is open, or this failure opened it
            InvalidCredentials: Unknown email or wrong password
        """
        if not email or not password:
            raise MissingCredentials()

        normalized_email = normalize_email(email)
        return retry_on_conflict(lambda: self._login_once(normalized_email, password))

    def request_reset_code(self, email: str) -> None:
        """
        Issue a password reset code and text it to the registered phone.

        Raises:
            AccountNotFound: Unknown email
            MissingPhoneNumber: No phone number on the account
            GatewayFailure: SMS gateway unreachable or misconfigured
        """
        normalized_email = normalize_email(email)
        account = self._load(normalized_email)
        if not account.phone:
            raise MissingPhoneNumber()

        code = issue_code(self.clock())
        updated = self.repository.update_by_email(
            normalized_email,
            {"password_reset_code": code.value, "reset_code_created_at": code.created_at},
        )
        if not updated:
            raise AccountNotFound()

        self.sms_sender.send([account.phone], RESET_SMS_TEMPLATE.format(code=code.value))
        logger.info("Password reset code sent for %s", normalized_email)

    def reset_password(
        self,
        email: str,
        old_password: str,
        new_password: str,
        reset_code: str | None,
    ) -> None:
        """
        Replace the password after checking the old password and SMS code.

        Raises:
            InvalidInput: Old or new password missing
            MissingResetCode: No code pending, or none submitted
            ResetCodeExpired: Pending code older than reset_code_ttl
            InvalidResetCode: Submitted code does not match
            IncorrectOldPassword: Old password check failed
        """
        if not old_password or not new_password:
            raise InvalidInput("Old and new passwords are required")

        normalized_email = normalize_email(email)
        retry_on_conflict(
            lambda: self._reset_once(normalized_email, old_password, new_password, reset_code)
        )

    def check_role(self, email: str, expected_role: Role) -> None:
        """
        Raises:
            AccountNotFound: Unknown email
            RoleForbidden: Account role differs from expected_role
        """
        account = self._load(normalize_email(email))
        if account.role != expected_role:
            raise RoleForbidden()

    def _login_once(self, email: str, password: str) -> LoginResult:
        account = self.repository.find_by_email(email)
        if account is None:
            check_password(password, None, self.bcrypt_cost)
            raise InvalidCredentials()

        now = self.clock()
        decision = self.lockout.check(account.login_retries, account.account_locked_until, now)
        if not decision.allow:
            raise AccountLocked()

        read_state = {
            "login_retries": account.login_retries,
            "account_locked_until": account.account_locked_until,
        }

        if not check_password(password, account.password_hash):
            decision = self.lockout.on_failure(account.login_retries, now)
            self._update(
                email,
                {"login_retries": decision.retries, "account_locked_until": decision.locked_until},
                expected=read_state,
            )
            if decision.reason is LockoutReason.MAX_ATTEMPTS:
                logger.warning(
                    "Account %s locked until %s after %d failed logins",
                    email,
                    decision.locked_until,
                    decision.retries,
                )
                raise AccountLocked("Maximum login attempts exceeded. Account is temporarily locked")
            raise InvalidCredentials()

        decision = self.lockout.on_success()
        if account.login_retries != decision.retries or account.account_locked_until is not None:
            self._update(
                email,
                {"login_retries": decision.retries, "account_locked_until": None},
                expected=read_state,
            )

        return LoginResult(token=self.token_issuer.issue(account), role=account.role)

    def _reset_once(
        self, email: str, old_password: str, new_password: str, reset_code: str | None
    ) -> None:
        account = self._load(email)
        old_password_valid = check_password(old_password, account.password_hash)

        stored_code = account.password_reset_code
        created_at = account.reset_code_created_at
        if not stored_code or created_at is None or not reset_code:
            raise MissingResetCode()

        if self.clock() - created_at > self.reset_code_ttl:
            raise ResetCodeExpired()

        if not codes_match(stored_code, reset_code):
            raise InvalidResetCode()

        if not old_password_valid:
            raise IncorrectOldPassword()

        self._update(
            email,
            {
                "password_hash": hash_password(new_password, self.bcrypt_cost),
                "password_reset_code": None,
                "reset_code_created_at": None,
            },
            expected={"password_reset_code": stored_code, "password_hash": account.password_hash},
        )
        logger.info("Password reset for %s", email)

    def _enforce_email_domain(self, email: str) -> None:
        try:
            pattern = re.compile(self.email_pattern)
        except re.error as e:
            raise IdentityError("Invalid email domain pattern") from e

        if pattern.fullmatch(email) is None:
            raise EmailDomainRejected()

    def _load(self, email: str) -> Account:
        account = self.repository.find_by_email(email)
        if account is None:
            raise AccountNotFound()
        return account

    def _update(
        self, email: str, changes: Mapping[str, Any], expected: Mapping[str, Any]
    ) -> None:
        if not self.repository.update_by_email(email, changes, expected=expected):
            raise ConcurrentModification()
