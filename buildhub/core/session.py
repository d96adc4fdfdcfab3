"""Session helpers and dependencies."""
from __future__ import annotations

from typing import Optional

from fastapi import Cookie, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from buildhub.core.cookies import SESSION_COOKIE_NAME, parse_session_cookie
from buildhub.core.database import get_db
from buildhub.core.errors import Unauthorized, UserNotFound
from buildhub.domain.users.models import User
from buildhub.domain.users.services import get_user_by_provider_id


class CallerIdentity(BaseModel):
    """The principal established by the external identity provider."""

    provider_id: str
    email: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    image_url: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


async def get_optional_caller(
    session_value: Optional[str] = Cookie(None, alias=SESSION_COOKIE_NAME),
) -> CallerIdentity | None:
    """Return the caller carried by the session cookie, if any."""
    claims = parse_session_cookie(session_value)
    if claims is None:
        return None
    return CallerIdentity.model_validate(claims)


async def get_caller(
    caller: CallerIdentity | None = Depends(get_optional_caller),
) -> CallerIdentity:
    if caller is None:
        raise Unauthorized()
    return caller


async def get_current_user(
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the caller's local record; it is provisioned by /api/sync-user."""
    user = await get_user_by_provider_id(db, caller.provider_id)
    if user is None:
        raise UserNotFound()
    return user


__all__ = [
    "CallerIdentity",
    "get_caller",
    "get_current_user",
    "get_optional_caller",
]
