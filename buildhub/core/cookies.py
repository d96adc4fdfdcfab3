"""Utilities for working with HTTP cookies."""
from __future__ import annotations

from typing import Any, Mapping

from fastapi import Response
from itsdangerous import BadSignature, URLSafeSerializer

from buildhub.core.config import settings

SESSION_COOKIE_NAME = "__session"
CSRF_COOKIE_NAME = "csrf_token"


def _serializer() -> URLSafeSerializer:
    return URLSafeSerializer(settings.SECRET_KEY, salt="session-cookie")


def make_session_value(claims: Mapping[str, Any]) -> str:
    """Create a signed session payload carrying the identity provider's claims."""
    return _serializer().dumps(dict(claims))


def parse_session_cookie(raw_value: str | None) -> dict[str, Any] | None:
    """Return the claims in a signed session cookie, or None when absent or tampered."""
    if not raw_value:
        return None
    try:
        data = _serializer().loads(raw_value)
    except BadSignature:
        return None
    if not isinstance(data, dict) or not data.get("provider_id"):
        return None
    return data


def set_csrf_cookie(response: Response, token: str, max_age: int) -> None:
    """Set the CSRF cookie; the browser never exposes it to scripts."""
    response.set_cookie(
        key=CSRF_COOKIE_NAME,
        value=token,
        max_age=max_age,
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.is_production,
    )


def clear_session_cookie(response: Response) -> None:
    """Remove the session and CSRF cookies using the same security options."""
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
    response.delete_cookie(
        key=CSRF_COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.is_production,
    )


__all__ = [
    "CSRF_COOKIE_NAME",
    "SESSION_COOKIE_NAME",
    "clear_session_cookie",
    "make_session_value",
    "parse_session_cookie",
    "set_csrf_cookie",
]
