"""
Session token issuance.

Tokens are stateless HS256 JWTs carrying the account id and email. There
is no server-side session store: validity is signature plus expiry.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

import jwt

from .codes import utcnow
from .exceptions import InvalidToken
from .ports import Account


@dataclass(frozen=True)
class TokenIssuer:
    secret: str
    algorithm: str = "HS256"
    ttl: timedelta = timedelta(hours=1)
    clock: Callable[[], datetime] = field(default=utcnow)

    def issue(self, account: Account) -> str:
        """Sign {id, email} with a short expiry."""
        now = self.clock()
        claims = {
            "id": account.id,
            "email": account.email,
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> dict[str, Any]:
        """
        Verify signature and expiry.

        Raises:
            InvalidToken: If the token is malformed, tampered or expired
        """
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "email"]},
            )
        except jwt.PyJWTError as e:
            raise InvalidToken() from e
        return claims
