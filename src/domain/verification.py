"""
Email verification domain service.

Verification State Machine
==========================

States:
- UNVERIFIED_NO_CODE: account exists, no code outstanding
- CODE_ISSUED: code and timestamp stored, email dispatched
- VERIFIED: is_active set, code cleared (terminal for the happy path)
- EXPIRED_REISSUED: code older than the validity window, replaced and resent
- RETRY_EXHAUSTED_PURGED: too many failed attempts, account deleted

Transitions on verify(email, code), evaluated in order:
    is_active                         -> AlreadyVerified (no mutation)
    no code outstanding               -> NoPendingCode
    retries >= max_attempts           -> purge, VerificationAttemptsExhausted
    code mismatch                     -> retries + 1, InvalidVerificationCode
    code older than code_ttl          -> reissue, retries + 1, VerificationCodeExpired
    otherwise                         -> VERIFIED

All counter writes are conditional on the values that were read, so two
concurrent requests cannot both consume the same attempt. A second verify
racing a successful one observes is_active and gets AlreadyVerified.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any
from urllib.parse import urlencode

from .codes import IssuedCode, codes_match, issue_code, utcnow
from .concurrency import retry_on_conflict
from .exceptions import (
    AccountNotFound,
    AlreadyVerified,
    ConcurrentModification,
    GatewayFailure,
    InvalidVerificationCode,
    NoPendingCode,
    NotificationRejected,
    VerificationAttemptsExhausted,
    VerificationCodeExpired,
)
from .ports import Account, AccountRepository, EmailMessage, EmailSender

logger = logging.getLogger(__name__)

VERIFY_SUBJECT = "Verify Your Email Address"
VERIFY_TEMPLATE = "email-verify"


def normalize_email(email: str) -> str:
    """
    Normalize email address for consistent storage and lookup.

    Applies: strip whitespace + lowercase
    """
    return email.strip().lower()


@dataclass
class VerificationService:
    """
    Domain service for email verification.

    Owns issuance, matching, expiry and retry-exhaustion purge of email
    verification codes.
    """

    repository: AccountRepository
    email_sender: EmailSender
    base_url: str = "http://localhost:8000"
    max_attempts: int = 3
    code_ttl: timedelta = timedelta(hours=24)
    clock: Callable[[], datetime] = field(default=utcnow)

    def new_code(self) -> IssuedCode:
        """Generate a code stamped with the current time."""
        return issue_code(self.clock())

    def send(self, email: str, name: str | None, code: str) -> None:
        """
        Email a verification code and link.

        Raises:
            NotificationRejected: If the gateway rejected any recipient.
                The stored code is left in place so a resend can follow.
            GatewayFailure: If the gateway is misconfigured or unreachable
        """
        query = urlencode({"email": email, "code": code})
        link = f"{self.base_url.rstrip('/')}/auth/verify-email?{query}"
        message = EmailMessage(
            to=email,
            subject=VERIFY_SUBJECT,
            template=VERIFY_TEMPLATE,
            context={
                "name": name or "User",
                "verification_code": code,
                "verification_link": link,
                "base_url": self.base_url,
            },
        )
        result = self.email_sender.send(message)
        if not result.ok:
            logger.warning("Verification email rejected for %s: %s", email, result.rejected)
            raise NotificationRejected()

    def resend(self, email: str) -> None:
        """
        Replace the outstanding code with a fresh one and email it.

        The attempt counter is left untouched so resending cannot be used to
        earn extra guesses.

        Raises:
            AccountNotFound: Unknown email
            AlreadyVerified: Account is already active
            NotificationRejected: Gateway rejected the email
            GatewayFailure: Gateway misconfigured or unreachable
        """
        normalized_email = normalize_email(email)
        retry_on_conflict(lambda: self._resend_once(normalized_email))

    def verify(self, email: str, code: str) -> None:
        """
        Match a submitted code against the outstanding one.

        Returns normally only when the account transitions to VERIFIED.
        Every other outcome raises an IdentityError subclass (see module
        docstring for the order of checks).
        """
        normalized_email = normalize_email(email)
        retry_on_conflict(lambda: self._verify_once(normalized_email, code))

    def _resend_once(self, email: str) -> None:
        account = self._load(email)
        if account.is_active:
            raise AlreadyVerified()

        fresh = self.new_code()
        self._update(
            email,
            {
                "email_verification_code": fresh.value,
                "email_code_created_at": fresh.created_at,
            },
            expected={
                "is_active": False,
                "email_verification_code": account.email_verification_code,
            },
        )
        logger.info("Verification code reissued for %s", email)
        self.send(email, account.name, fresh.value)

    def _verify_once(self, email: str, code: str) -> None:
        account = self._load(email)
        if account.is_active:
            raise AlreadyVerified()

        stored_code = account.email_verification_code
        created_at = account.email_code_created_at
        if stored_code is None or created_at is None:
            raise NoPendingCode()

        retries = account.email_verification_retries
        read_state = {
            "email_verification_code": stored_code,
            "email_verification_retries": retries,
        }

        if retries >= self.max_attempts:
            self._purge(account)
            raise VerificationAttemptsExhausted()

        if not codes_match(stored_code, code):
            self._update(email, {"email_verification_retries": retries + 1}, expected=read_state)
            raise InvalidVerificationCode()

        now = self.clock()
        if now - created_at > self.code_ttl:
            fresh = issue_code(now)
            self._update(
                email,
                {
                    "email_verification_code": fresh.value,
                    "email_code_created_at": fresh.created_at,
                    "email_verification_retries": retries + 1,
                },
                expected=read_state,
            )
            logger.info("Expired verification code replaced for %s", email)
            try:
                self.send(email, account.name, fresh.value)
            except (NotificationRejected, GatewayFailure) as e:
                raise VerificationCodeExpired(
                    "Verification code expired and a new code could not be sent"
                ) from e
            raise VerificationCodeExpired()

        self._update(
            email,
            {
                "email_verification_code": None,
                "email_code_created_at": None,
                "email_verification_retries": 0,
                "is_active": True,
            },
            expected={**read_state, "is_active": False},
        )
        logger.info("Email verified for %s", email)

    def _purge(self, account: Account) -> None:
        """Irreversibly delete an unverified account. Logged before deletion."""
        logger.warning(
            "Purging unverified account %s (id=%s) after %d failed verification attempts",
            account.email,
            account.id,
            account.email_verification_retries,
        )
        if not self.repository.delete_by_email(account.email):
            logger.info("Account %s was already removed", account.email)

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
