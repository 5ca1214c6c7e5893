"""
Domain layer - Account security state machine.

This package contains the core business logic of the identity service:
lockout policy, verification code lifecycle, credential lifecycle and
session token issuance. It defines its own port interfaces for
infrastructure abstraction; the only third-party imports are bcrypt
and PyJWT.
"""

from .credentials import CredentialService, LoginResult, RegistrationResult
from .exceptions import ErrorKind, IdentityError
from .lockout import LockoutPolicy
from .ports import Account, AccountRepository, DeliveryResult, EmailSender, Role, SmsSender
from .tokens import TokenIssuer
from .verification import VerificationService

__all__ = [
    "Account",
    "AccountRepository",
    "CredentialService",
    "DeliveryResult",
    "EmailSender",
    "ErrorKind",
    "IdentityError",
    "LockoutPolicy",
    "LoginResult",
    "RegistrationResult",
    "Role",
    "SmsSender",
    "TokenIssuer",
    "VerificationService",
]
