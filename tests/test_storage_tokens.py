"""Tests for storage-token minting and the storage-token endpoint."""

from __future__ import annotations

import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from jose import jwt

from buildhub.core.config import settings
from buildhub.core.errors import ConfigurationError, Unauthorized, UserNotFound
from buildhub.core.storage_tokens import (
    STORAGE_AUDIENCE,
    STORAGE_ISSUER,
    STORAGE_ROLE,
    StorageTokenIssuer,
    derive_subject,
)
from buildhub.core.tokens import Expired, SignedTokenCodec
from conftest import sign_in

SECRET = "storage-unit-secret"


@pytest.fixture
def issuer(clock) -> StorageTokenIssuer:
    return StorageTokenIssuer(secret=SECRET, ttl_seconds=1800, clock=clock)


def _stored_user(**fields):
    fields.setdefault("id", "6f1c0c1e-0000-4000-8000-000000000001")
    fields.setdefault("email", "tarnished@example.com")
    return SimpleNamespace(**fields)


def test_derive_subject_is_deterministic_uuid5() -> None:
    subject = derive_subject("user_abc")

    assert subject == derive_subject("user_abc")
    assert uuid.UUID(subject).version == 5
    assert subject != derive_subject("user_abd")


def test_derive_subject_is_scoped_by_provider() -> None:
    assert derive_subject("user_abc", provider="clerk") == derive_subject("user_abc")
    assert derive_subject("user_abc", provider="github") != derive_subject("user_abc")


@pytest.mark.anyio
async def test_issued_token_carries_storage_claims(issuer, clock) -> None:
    caller = SimpleNamespace(provider_id="user_abc")
    lookup = AsyncMock(return_value=_stored_user())

    token = await issuer.issue(caller, lookup)

    lookup.assert_awaited_once_with("user_abc")
    assert jwt.get_unverified_header(token)["alg"] == "HS256"

    claims = SignedTokenCodec(SECRET, clock=clock).verify(token, audience=STORAGE_AUDIENCE)
    subject = derive_subject("user_abc")
    assert claims["sub"] == subject
    assert claims["user_id"] == subject
    assert claims["role"] == STORAGE_ROLE == "authenticated"
    assert claims["aud"] == "authenticated"
    assert claims["iss"] == STORAGE_ISSUER == "supabase"
    assert claims["email"] == "tarnished@example.com"
    assert claims["clerk_id"] == "user_abc"
    assert claims["db_user_id"] == "6f1c0c1e-0000-4000-8000-000000000001"
    assert claims["iat"] == int(clock.now)
    assert claims["exp"] == claims["iat"] + 1800
    assert claims["jti"] == f"{subject}-{int(clock.now * 1000)}"


@pytest.mark.anyio
async def test_token_is_rejected_once_lifetime_elapses(issuer, clock) -> None:
    token = await issuer.issue(SimpleNamespace(provider_id="user_abc"), AsyncMock(return_value=_stored_user()))
    codec = SignedTokenCodec(SECRET, clock=clock)

    clock.advance(1799)
    assert codec.verify(token)["clerk_id"] == "user_abc"
    clock.advance(1)
    with pytest.raises(Expired):
        codec.verify(token)


@pytest.mark.anyio
async def test_missing_caller_is_unauthorized_without_lookup(issuer) -> None:
    lookup = AsyncMock()

    with pytest.raises(Unauthorized):
        await issuer.issue(None, lookup)

    lookup.assert_not_awaited()


@pytest.mark.anyio
async def test_unknown_user_is_not_found(issuer) -> None:
    with pytest.raises(UserNotFound) as excinfo:
        await issuer.issue(SimpleNamespace(provider_id="ghost"), AsyncMock(return_value=None))
    assert excinfo.value.detail == "User not found in database"


@pytest.mark.anyio
async def test_missing_secret_is_configuration_error(clock) -> None:
    issuer = StorageTokenIssuer(secret="", clock=clock)
    with pytest.raises(ConfigurationError):
        await issuer.issue(SimpleNamespace(provider_id="user_abc"), AsyncMock(return_value=_stored_user()))


@pytest.mark.anyio
async def test_endpoint_requires_identity(client) -> None:
    response = await client.get("/api/auth/storage-token")
    assert response.status_code == 401


@pytest.mark.anyio
async def test_endpoint_requires_local_user(client) -> None:
    sign_in(client, "user_unsynced")
    response = await client.get("/api/auth/storage-token")
    assert response.status_code == 404
    assert response.json() == {"detail": "User not found in database"}


@pytest.mark.anyio
async def test_endpoint_returns_verifiable_token(client, create_user) -> None:
    user = await create_user("user_abc", email="abc@example.com")
    sign_in(client, "user_abc")

    response = await client.get("/api/auth/storage-token")

    assert response.status_code == 200
    claims = jwt.decode(
        response.json()["token"],
        settings.STORAGE_JWT_SECRET,
        algorithms=["HS256"],
        audience=STORAGE_AUDIENCE,
        issuer=STORAGE_ISSUER,
    )
    assert claims["sub"] == derive_subject("user_abc")
    assert claims["db_user_id"] == str(user.id)
    assert claims["email"] == "abc@example.com"


@pytest.mark.anyio
async def test_endpoint_reports_missing_secret(client, create_user, monkeypatch) -> None:
    await create_user("user_abc")
    sign_in(client, "user_abc")
    monkeypatch.setattr(settings, "STORAGE_JWT_SECRET", "")

    response = await client.get("/api/auth/storage-token")

    assert response.status_code == 500
    assert response.json() == {"detail": "Server configuration error: JWT secret not defined"}
