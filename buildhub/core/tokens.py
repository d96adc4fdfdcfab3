"""Compact signed tokens (HS256 JWT) shared by the CSRF guard and the storage-token issuer."""
from __future__ import annotations

import time
from typing import Any, Callable, Mapping

from jose import JWTError, jwt

# Expiry and not-before are checked here rather than by jose so the boundary
# (now == exp is expired) and the injected clock are honoured.
_DECODE_OPTIONS = {
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
}


class TokenError(Exception):
    """Base class for token verification failures."""


class InvalidSignature(TokenError):
    """Signature does not match, or the token is not a well-formed JWT."""


class Expired(TokenError):
    """Current time is at or past the ``exp`` claim."""


class NotYetValid(TokenError):
    """Current time precedes the ``nbf`` claim."""


class SignedTokenCodec:
    """Sign and verify claim sets with a shared symmetric secret."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("A signing secret is required")
        self._secret = secret
        self._algorithm = algorithm
        self._clock = clock

    def now(self) -> int:
        return int(self._clock())

    def sign(self, claims: Mapping[str, Any], expires_in: int) -> str:
        """Return a token carrying ``claims`` plus ``iat``/``nbf``/``exp``."""
        issued_at = self.now()
        payload = dict(claims)
        payload.setdefault("iat", issued_at)
        payload.setdefault("nbf", issued_at)
        payload.setdefault("exp", issued_at + int(expires_in))
        return jwt.encode(
            payload,
            self._secret,
            algorithm=self._algorithm,
            headers={"typ": "JWT"},
        )

    def verify(self, token: str, audience: str | None = None) -> dict[str, Any]:
        """Return the decoded claims or raise a :class:`TokenError` subclass."""
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options=_DECODE_OPTIONS,
            )
        except JWTError as exc:
            raise InvalidSignature(str(exc)) from exc

        now = self.now()
        try:
            expires_at = int(claims["exp"])
            not_before = int(claims.get("nbf", claims.get("iat", 0)))
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidSignature("Token is missing valid time claims") from exc

        if now >= expires_at:
            raise Expired("Token has expired")
        if now < not_before:
            raise NotYetValid("Token is not valid yet")
        if audience is not None and claims.get("aud") != audience:
            raise InvalidSignature("Token audience mismatch")
        return claims


__all__ = [
    "Expired",
    "InvalidSignature",
    "NotYetValid",
    "SignedTokenCodec",
    "TokenError",
]
