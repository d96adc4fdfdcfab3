"""Short-lived bearer tokens accepted by the object-storage service.

The storage service does not share the identity provider's session, so the
app mints its own HS256 JWT with the claims the storage service expects. The
subject is a UUID derived from the provider's user id; the namespace below is
baked into every stored object path and must never change, otherwise objects
written under the old subjects become unreachable.
"""
from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Awaitable, Callable, Optional, Protocol

from fastapi import Request

from buildhub.core.config import settings
from buildhub.core.errors import ConfigurationError, Unauthorized, UserNotFound
from buildhub.core.tokens import SignedTokenCodec

SUBJECT_NAMESPACE = uuid.UUID("1b671a64-40d5-491e-99b0-da01ff1f3341")

STORAGE_ROLE = "authenticated"
STORAGE_AUDIENCE = "authenticated"
STORAGE_ISSUER = "supabase"

security_logger = logging.getLogger("buildhub.security")


class Caller(Protocol):
    provider_id: str


class StoredUser(Protocol):
    id: Any
    email: Optional[str]


UserLookup = Callable[[str], Awaitable[Optional[StoredUser]]]


def derive_subject(provider_id: str, provider: str | None = None) -> str:
    """Return the stable storage subject for an identity-provider user id."""
    prefix = provider or settings.IDENTITY_PROVIDER
    return str(uuid.uuid5(SUBJECT_NAMESPACE, f"{prefix}:{provider_id}"))


class StorageTokenIssuer:
    """Mint storage credentials for callers that have a local user record."""

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
        return settings.STORAGE_TOKEN_TTL_SECONDS

    def _codec(self) -> SignedTokenCodec:
        secret = self._secret if self._secret is not None else settings.STORAGE_JWT_SECRET
        if not secret:
            raise ConfigurationError("Server configuration error: JWT secret not defined")
        return SignedTokenCodec(secret, clock=self._clock)

    async def issue(self, caller: Caller | None, lookup: UserLookup) -> str:
        if caller is None:
            raise Unauthorized()

        user = await lookup(caller.provider_id)
        if user is None:
            raise UserNotFound("User not found in database")

        codec = self._codec()
        subject = derive_subject(caller.provider_id)
        claims = {
            "sub": subject,
            "jti": f"{subject}-{int(self._clock() * 1000)}",
            "role": STORAGE_ROLE,
            "aud": STORAGE_AUDIENCE,
            "iss": STORAGE_ISSUER,
            "user_id": subject,
            "email": user.email,
            "clerk_id": caller.provider_id,
            "db_user_id": str(user.id),
        }
        token = codec.sign(claims, self.ttl_seconds)
        security_logger.info("Issued storage token [subject=%s]", subject)
        return token


def get_storage_token_issuer(request: Request) -> StorageTokenIssuer:
    return request.app.state.storage_token_issuer


__all__ = [
    "STORAGE_AUDIENCE",
    "STORAGE_ISSUER",
    "STORAGE_ROLE",
    "SUBJECT_NAMESPACE",
    "StorageTokenIssuer",
    "derive_subject",
    "get_storage_token_issuer",
]
