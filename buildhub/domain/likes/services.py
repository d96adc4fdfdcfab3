from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from buildhub.core.errors import Conflict
from buildhub.domain.builds.services import get_build
from buildhub.domain.likes.models import Like
from buildhub.domain.users.models import User


async def _find_like(db: AsyncSession, build_id: str, user: User) -> Like | None:
    result = await db.execute(
        select(Like).where(Like.build_id == build_id, Like.user_id == user.id)
    )
    return result.scalar_one_or_none()


async def has_liked(db: AsyncSession, build_id: str, user: User) -> bool:
    return await _find_like(db, build_id, user) is not None


async def toggle_like(db: AsyncSession, build_id: str, user: User) -> bool:
    """Add the caller's like, or remove it when present. Returns the new state."""
    await get_build(db, build_id)

    existing = await _find_like(db, build_id, user)
    if existing is not None:
        await db.delete(existing)
        await db.commit()
        return False

    db.add(Like(build_id=build_id, user_id=user.id))
    try:
        await db.commit()
    except IntegrityError:
        # A concurrent toggle inserted the same (user, build) pair first.
        await db.rollback()
        raise Conflict("Like already recorded") from None
    return True
