"""
Login lockout policy.

Pure decisions over (login_retries, account_locked_until, now). Locks are
time-boxed and expire lazily: a lock is "open" only while its timestamp is
in the future, so no background sweep or manual unlock exists.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class LockoutReason(Enum):
    ALLOWED = "allowed"
    LOCKED = "locked"
    MAX_ATTEMPTS = "max-attempts"
    BAD_CREDENTIALS = "bad-credentials"


@dataclass(frozen=True)
class LockoutDecision:
    """
    Outcome of a lockout evaluation.

    retries and locked_until are the values to persist after the event.
    """

    allow: bool
    reason: LockoutReason
    retries: int
    locked_until: datetime | None = None


@dataclass(frozen=True)
class LockoutPolicy:
    max_attempts: int = 3
    lock_duration: timedelta = timedelta(hours=1)

    def check(
        self, retries: int, locked_until: datetime | None, now: datetime
    ) -> LockoutDecision:
        """Pre-check run before the password is looked at."""
        if locked_until is not None and locked_until > now:
            return LockoutDecision(
                allow=False,
                reason=LockoutReason.LOCKED,
                retries=retries,
                locked_until=locked_until,
            )
        return LockoutDecision(allow=True, reason=LockoutReason.ALLOWED, retries=retries)

    def on_failure(self, retries: int, now: datetime) -> LockoutDecision:
        """
        Count a failed password check.

        The lock engages when the updated count reaches max_attempts. The
        counter is not reset when a lock expires, so a single further
        failure after expiry re-engages the lock.
        """
        updated = retries + 1
        if updated >= self.max_attempts:
            return LockoutDecision(
                allow=False,
                reason=LockoutReason.MAX_ATTEMPTS,
                retries=updated,
                locked_until=now + self.lock_duration,
            )
        return LockoutDecision(
            allow=False, reason=LockoutReason.BAD_CREDENTIALS, retries=updated
        )

    def on_success(self) -> LockoutDecision:
        return LockoutDecision(allow=True, reason=LockoutReason.ALLOWED, retries=0)
