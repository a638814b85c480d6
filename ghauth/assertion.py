"""
Signed App identity assertions.

GitHub authenticates App-level API calls with an RS256 JWT whose issuer
is the App (client id or App id) and whose lifetime is at most ten
minutes. Each call to sign() mints an independent assertion; nothing is
cached, so the installation lookup and the token exchange each get a
freshly bounded validity window.
"""

import logging
import time
from typing import Callable

import jwt

from .domain.credentials import Assertion
from .vault import SigningKeyHandle

logger = logging.getLogger(__name__)

ASSERTION_LIFETIME = 600  # seconds
ALGORITHM = "RS256"


class AssertionSigner:
    """
    Builds ``{iat, exp, iss}`` claims and signs them with the App key.

    Args:
        lifetime: Seconds until ``exp``; GitHub rejects more than 600
        clock: Returns the current Unix time, injectable for tests
    """

    def __init__(self, lifetime: int = ASSERTION_LIFETIME,
                 clock: Callable[[], float] = time.time):
        if not 0 < lifetime <= ASSERTION_LIFETIME:
            raise ValueError(f"Assertion lifetime must be between 1 and {ASSERTION_LIFETIME} seconds")
        self.lifetime = lifetime
        self.clock = clock

    def sign(self, issuer: str, handle: SigningKeyHandle) -> Assertion:
        now = int(self.clock())
        claims = {
            "iat": now,
            "exp": now + self.lifetime,
            "iss": issuer,
        }
        token = jwt.encode(
            claims,
            handle.private_key,
            algorithm=ALGORITHM,
            headers={"typ": "JWT"},
        )
        logger.debug(f"Signed assertion for issuer {issuer}, expires at {claims['exp']}")
        return Assertion(token=token, issuer=issuer, issued_at=now, expires_at=claims["exp"])
