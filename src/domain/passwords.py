"""
Password hashing with bcrypt.

Timing oracle prevention: check_password() always runs a bcrypt
comparison, against a dummy hash when there is no stored hash, so
response time does not reveal whether an account exists. The dummy hash
must use the same cost factor as real hashes, otherwise the two paths
take measurably different times.
"""

from functools import lru_cache

import bcrypt

from .exceptions import PasswordTooLong

BCRYPT_MAX_BYTES = 72
DEFAULT_COST = 10


@lru_cache(maxsize=None)
def dummy_hash(cost: int = DEFAULT_COST) -> bytes:
    """Hash of a throwaway password at ``cost``, computed once per cost."""
    return bcrypt.hashpw(b"dummy_password_for_timing_safety", bcrypt.gensalt(cost))


def hash_password(password: str, cost: int = DEFAULT_COST) -> str:
    """
    Hash password using bcrypt with a random salt.

    Raises:
        PasswordTooLong: If the UTF-8 encoding exceeds bcrypt's 72-byte limit
    """
    encoded = password.encode()
    if len(encoded) > BCRYPT_MAX_BYTES:
        raise PasswordTooLong()
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=cost)).decode()


def check_password(password: str, password_hash: str | None, cost: int = DEFAULT_COST) -> bool:
    """
    Constant-time password verification via bcrypt.checkpw().

    ``cost`` only matters when ``password_hash`` is None: it selects the
    dummy hash compared against so the miss costs as much as a real check.
    """
    encoded = password.encode()
    too_long = len(encoded) > BCRYPT_MAX_BYTES
    if too_long:
        encoded = encoded[:BCRYPT_MAX_BYTES]

    if password_hash is None:
        bcrypt.checkpw(encoded, dummy_hash(cost))
        return False

    matched = bcrypt.checkpw(encoded, password_hash.encode())
    return matched and not too_long
