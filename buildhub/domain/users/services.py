"""Query helpers for local user records."""
from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from buildhub.core.errors import ValidationError
from buildhub.domain.builds.models import Build
from buildhub.domain.comments.models import Comment
from buildhub.domain.likes.models import Like
from buildhub.domain.users.models import User


async def get_user_by_provider_id(db: AsyncSession, provider_id: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.provider_id == provider_id))
    return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def sync_user(db: AsyncSession, caller: Any) -> User:
    """Create or refresh the local record for an identity-provider user.

    The username falls back to the e-mail local part and the display name is
    the first and last names joined, matching what the provider shows.
    """
    email = (caller.email or "").strip()
    if not email:
        raise ValidationError("User email is required")

    full_name = " ".join(part for part in (caller.first_name, caller.last_name) if part)
    username = caller.username or email.split("@")[0]

    user = await get_user_by_provider_id(db, caller.provider_id)
    if user is None:
        user = User(provider_id=caller.provider_id)
        db.add(user)

    user.email = email
    user.username = username
    user.name = full_name or None
    user.image_url = caller.image_url or None

    await db.commit()
    await db.refresh(user)
    return user


async def get_user_stats(db: AsyncSession, user: User) -> dict[str, int]:
    build_count = await db.scalar(select(func.count(Build.id)).where(Build.user_id == user.id))
    published_count = await db.scalar(
        select(func.count(Build.id)).where(Build.user_id == user.id, Build.is_published.is_(True))
    )
    likes_received = await db.scalar(
        select(func.count(Like.id)).join(Build, Like.build_id == Build.id).where(Build.user_id == user.id)
    )
    comments_received = await db.scalar(
        select(func.count(Comment.id))
        .join(Build, Comment.build_id == Build.id)
        .where(Build.user_id == user.id)
    )
    return {
        "build_count": build_count or 0,
        "published_build_count": published_count or 0,
        "likes_received": likes_received or 0,
        "comments_received": comments_received or 0,
    }
