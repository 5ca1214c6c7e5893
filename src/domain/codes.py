"""
One-time code generation.

Codes are 6-digit decimal strings drawn from the secrets module, paired
with the moment of issuance so callers can age them later.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timezone

CODE_MIN = 100_000
CODE_MAX = 999_999


def utcnow() -> datetime:
    """Default clock for the domain services."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class IssuedCode:
    value: str
    created_at: datetime


def generate_code() -> str:
    """Return a cryptographically random code in [100000, 999999]."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def issue_code(now: datetime) -> IssuedCode:
    return IssuedCode(value=generate_code(), created_at=now)


def codes_match(stored: str, submitted: str) -> bool:
    """Exact string equality in constant time."""
    return secrets.compare_digest(stored.encode(), submitted.encode())
