"""Tests for the double-submit CSRF guard."""

from __future__ import annotations

import pytest
from fastapi import Response
from starlette.requests import Request

from buildhub.core.config import settings
from buildhub.core.cookies import CSRF_COOKIE_NAME
from buildhub.core.csrf import CsrfGuard
from buildhub.core.errors import ConfigurationError
from buildhub.core.tokens import SignedTokenCodec
from buildhub.domain.users.services import get_user_by_provider_id
from conftest import csrf_headers, sign_in


def _request(method: str, cookie: str | None = None, header: str | None = None) -> Request:
    raw_headers = []
    if header is not None:
        raw_headers.append((b"x-csrf-token", header.encode()))
    if cookie is not None:
        raw_headers.append((b"cookie", f"{CSRF_COOKIE_NAME}={cookie}".encode()))
    return Request({"type": "http", "method": method, "path": "/", "query_string": b"", "headers": raw_headers})


@pytest.fixture
def guard(clock) -> CsrfGuard:
    return CsrfGuard(secret="csrf-unit-secret", ttl_seconds=900, clock=clock)


def test_issued_token_validates_immediately(guard) -> None:
    token = guard.issue()
    assert guard.validate(token, token)


def test_issued_token_fails_after_expiry(guard, clock) -> None:
    token = guard.issue()
    clock.advance(900)
    assert not guard.validate(token, token)


def test_independent_tokens_carry_different_values(guard) -> None:
    codec = SignedTokenCodec("csrf-unit-secret", clock=guard._clock)
    values = {codec.verify(guard.issue())["value"] for _ in range(50)}
    assert len(values) == 50


def test_two_valid_tokens_with_different_values_do_not_match(guard) -> None:
    assert not guard.validate(guard.issue(), guard.issue())


@pytest.mark.parametrize("cookie, header", [(None, "x"), ("x", None), ("", ""), (None, None)])
def test_missing_tokens_fail_closed(guard, cookie, header) -> None:
    assert not guard.validate(cookie, header)


@pytest.mark.parametrize("method", ["GET", "HEAD", "OPTIONS"])
def test_safe_methods_are_exempt(guard, method) -> None:
    assert guard.check(_request(method))


@pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE"])
def test_unsafe_methods_require_matching_pair(guard, method) -> None:
    token = guard.issue()
    assert not guard.check(_request(method))
    assert not guard.check(_request(method, cookie=token))
    assert guard.check(_request(method, cookie=token, header=token))


def test_issue_sets_strict_http_only_cookie(guard) -> None:
    response = Response()
    token = guard.issue(response)

    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"{CSRF_COOKIE_NAME}={token}")
    assert "HttpOnly" in set_cookie
    assert "Max-Age=900" in set_cookie
    assert "Path=/" in set_cookie
    assert "samesite=strict" in set_cookie.lower()


def test_missing_secret_is_configuration_error(monkeypatch) -> None:
    monkeypatch.setattr(settings, "CSRF_SECRET", "")
    with pytest.raises(ConfigurationError):
        CsrfGuard().issue()


@pytest.mark.anyio
async def test_csrf_token_endpoint_requires_identity(client) -> None:
    response = await client.get("/api/csrf-token")
    assert response.status_code == 401


@pytest.mark.anyio
async def test_csrf_token_endpoint_sets_cookie_and_rate_limit_headers(client) -> None:
    sign_in(client)
    response = await client.get("/api/csrf-token")

    assert response.status_code == 200
    token = response.json()["csrfToken"]
    assert client.cookies.get(CSRF_COOKIE_NAME) == token
    assert response.headers["X-RateLimit-Limit"] == str(settings.CSRF_RATE_LIMIT_MAX)
    assert response.headers["X-RateLimit-Remaining"] == str(settings.CSRF_RATE_LIMIT_MAX - 1)


@pytest.mark.anyio
async def test_matching_cookie_and_header_reach_the_handler(client) -> None:
    sign_in(client, "user_sync", username="tarnished")
    headers = await csrf_headers(client)

    response = await client.post("/api/sync-user", headers=headers)

    assert response.status_code == 200
    assert response.json()["username"] == "tarnished"


@pytest.mark.anyio
async def test_tampered_header_is_forbidden(client, session_factory) -> None:
    sign_in(client, "user_sync")
    token = (await csrf_headers(client))["X-CSRF-Token"]
    header, payload, signature = token.split(".")
    flipped = "A" if signature[0] != "A" else "B"
    tampered = ".".join([header, payload, flipped + signature[1:]])

    response = await client.post("/api/sync-user", headers={"X-CSRF-Token": tampered})

    assert response.status_code == 403
    assert response.json() == {"detail": "Invalid or missing CSRF token"}

    # The guarded handler never ran, so no user was provisioned.
    async with session_factory() as session:
        assert await get_user_by_provider_id(session, "user_sync") is None


@pytest.mark.anyio
async def test_missing_header_is_forbidden(client) -> None:
    sign_in(client)
    await csrf_headers(client)
    response = await client.post("/api/sync-user")
    assert response.status_code == 403


@pytest.mark.anyio
async def test_missing_cookie_is_forbidden(client) -> None:
    sign_in(client)
    headers = await csrf_headers(client)
    client.cookies.delete(CSRF_COOKIE_NAME)
    response = await client.post("/api/sync-user", headers=headers)
    assert response.status_code == 403


@pytest.mark.anyio
async def test_missing_secret_on_unsafe_request_is_server_error(client, monkeypatch) -> None:
    sign_in(client)
    headers = await csrf_headers(client)
    monkeypatch.setattr(settings, "CSRF_SECRET", "")

    response = await client.post("/api/sync-user", headers=headers)

    assert response.status_code == 500
    assert "CSRF_SECRET" in response.json()["detail"]
