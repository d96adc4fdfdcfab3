"""Double-submit CSRF tokens for state-changing JSON requests."""
from __future__ import annotations

import hmac
import logging
import secrets
import time
from typing import Callable

from fastapi import Request, Response

from buildhub.core.config import settings
from buildhub.core.cookies import CSRF_COOKIE_NAME, set_csrf_cookie
from buildhub.core.errors import ConfigurationError, Forbidden
from buildhub.core.tokens import SignedTokenCodec, TokenError

SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}
CSRF_HEADER_NAME = "X-CSRF-Token"

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("buildhub.security")


class CsrfGuard:
    """Issue signed CSRF tokens and validate the cookie/header pair on unsafe requests.

    The token is written to an HttpOnly cookie and also handed to the client,
    which echoes it in ``X-CSRF-Token``. Both copies must verify and carry the
    same random value. No server-side storage is involved.
    """

    def __init__(
        self,
        secret: str | None = None,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = secret
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    @property
    def ttl_seconds(self) -> int:
        if self._ttl_seconds is not None:
            return self._ttl_seconds
        return settings.CSRF_TOKEN_TTL_SECONDS

    def _codec(self) -> SignedTokenCodec:
        secret = self._secret if self._secret is not None else settings.CSRF_SECRET
        if not secret:
            raise ConfigurationError("CSRF_SECRET environment variable is not set")
        return SignedTokenCodec(secret, clock=self._clock)

    def issue(self, response: Response | None = None) -> str:
        """Return a fresh token, setting it as the CSRF cookie when a response is given."""
        token = self._codec().sign({"value": secrets.token_urlsafe(32)}, self.ttl_seconds)
        if response is not None:
            set_csrf_cookie(response, token, self.ttl_seconds)
        return token

    def validate(self, cookie_token: str | None, header_token: str | None) -> bool:
        if not cookie_token or not header_token:
            return False

        codec = self._codec()
        try:
            cookie_value = codec.verify(cookie_token).get("value")
            header_value = codec.verify(header_token).get("value")
        except TokenError as exc:
            logger.debug("CSRF token verification failed: %s", exc)
            return False

        if not isinstance(cookie_value, str) or not isinstance(header_value, str):
            return False
        return hmac.compare_digest(cookie_value, header_value)

    def check(self, request: Request) -> bool:
        if request.method.upper() in SAFE_METHODS:
            return True
        return self.validate(
            request.cookies.get(CSRF_COOKIE_NAME),
            request.headers.get(CSRF_HEADER_NAME),
        )


def get_csrf_guard(request: Request) -> CsrfGuard:
    return request.app.state.csrf_guard


async def enforce_csrf_protection(request: Request) -> None:
    """Dependency that rejects unsafe requests without a matching CSRF token pair."""
    if not get_csrf_guard(request).check(request):
        security_logger.warning(
            "Rejected %s %s with invalid CSRF token",
            request.method,
            request.url.path,
        )
        raise Forbidden("Invalid or missing CSRF token")


__all__ = [
    "CSRF_HEADER_NAME",
    "CsrfGuard",
    "SAFE_METHODS",
    "enforce_csrf_protection",
    "get_csrf_guard",
]
