"""
Domain exceptions - Semantic error types for the identity service.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
Every exception carries an ErrorKind so outer layers can translate
failures without inspecting concrete classes.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories surfaced to callers."""

    INVALID_INPUT = "invalid_input"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    UNAUTHORIZED = "unauthorized"
    PRECONDITION_FAILED = "precondition_failed"
    EXPIRED = "expired"
    INTERNAL_FAILURE = "internal_failure"


class IdentityError(Exception):
    """Base class for identity domain errors."""

    kind: ErrorKind = ErrorKind.INTERNAL_FAILURE
    default_message: str = "Identity operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# InvalidInput


class InvalidInput(IdentityError):
    """Missing or malformed required fields."""

    kind = ErrorKind.INVALID_INPUT
    default_message = "Invalid input"


class MissingCredentials(InvalidInput):
    default_message = "Email and password are required"


class PasswordTooLong(InvalidInput):
    default_message = "Password must not exceed 72 bytes"


class NoPendingCode(InvalidInput):
    """No email verification code is outstanding for the account."""

    default_message = "No verification code found for this email"


class MissingResetCode(InvalidInput):
    """Either no reset code was requested or none was submitted."""

    default_message = "A password reset code is required"


class MissingPhoneNumber(InvalidInput):
    default_message = "Phone number not found for this user"


class InvalidRecipients(InvalidInput):
    default_message = "Invalid recipient(s) provided"


# Conflict


class Conflict(IdentityError):
    kind = ErrorKind.CONFLICT
    default_message = "Conflict"


class EmailAlreadyRegistered(Conflict):
    """An account already exists for this email."""

    default_message = "User already exists"


class AlreadyVerified(Conflict):
    default_message = "Email already verified"


class ConcurrentModification(Conflict):
    """The account kept changing underneath a conditional update."""

    default_message = "Account was modified concurrently, please retry"


# NotFound


class AccountNotFound(IdentityError):
    kind = ErrorKind.NOT_FOUND
    default_message = "User does not exist"


# Forbidden


class Forbidden(IdentityError):
    kind = ErrorKind.FORBIDDEN
    default_message = "Access forbidden for this action"


class AccountLocked(Forbidden):
    """Login denied while the lockout window is open."""

    default_message = "Account is temporarily locked"


class VerificationAttemptsExhausted(Forbidden):
    """Raised after the unverified account has been purged."""

    default_message = "Maximum email verification attempts exceeded. Data has been deleted"


class RoleForbidden(Forbidden):
    pass


# Unauthorized


class Unauthorized(IdentityError):
    kind = ErrorKind.UNAUTHORIZED
    default_message = "Unauthorized"


class InvalidCredentials(Unauthorized):
    """Unknown email or wrong password, deliberately indistinguishable."""

    default_message = "Invalid credentials"


class InvalidVerificationCode(Unauthorized):
    default_message = "Invalid email verification code"


class InvalidResetCode(Unauthorized):
    default_message = "Invalid password reset code"


class IncorrectOldPassword(Unauthorized):
    default_message = "Old password is incorrect"


class InvalidToken(Unauthorized):
    default_message = "Invalid or expired token"


# PreconditionFailed


class PreconditionFailed(IdentityError):
    kind = ErrorKind.PRECONDITION_FAILED
    default_message = "Precondition failed"


class EmailDomainRejected(PreconditionFailed):
    default_message = "Email does not meet condition"


class NotificationRejected(PreconditionFailed):
    """The email gateway reported rejected recipients."""

    default_message = "Failed to send verification email"


# Expired


class CodeExpired(IdentityError):
    kind = ErrorKind.EXPIRED
    default_message = "Code has expired"


class VerificationCodeExpired(CodeExpired):
    default_message = "Verification code expired, a new code has been sent"


class ResetCodeExpired(CodeExpired):
    default_message = "Password reset code has expired"


# InternalFailure


class GatewayFailure(IdentityError):
    """Outbound gateway misconfigured, unreachable or non-successful."""

    kind = ErrorKind.INTERNAL_FAILURE
    default_message = "Failed to send SMS"
