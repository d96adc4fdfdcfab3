"""API routes for public profiles and the caller's own profile."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from buildhub.core.config import settings
from buildhub.core.csrf import enforce_csrf_protection
from buildhub.core.database import get_db
from buildhub.core.errors import Conflict, UserNotFound
from buildhub.core.session import get_current_user
from buildhub.domain.builds import services as build_services
from buildhub.domain.builds.schemas import BuildPage
from buildhub.domain.users.models import User
from buildhub.domain.users.schemas import ProfileUpdate, UserOut, UserProfileOut, UserStats
from buildhub.domain.users.services import get_user_by_username, get_user_stats
from buildhub.web.routes.builds import to_list_item

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_user_or_404(db: AsyncSession, username: str) -> User:
    user = await get_user_by_username(db, username)
    if user is None:
        raise UserNotFound()
    return user


@router.get("/check-username")
async def check_username(
    username: str = Query(..., min_length=3, max_length=30),
    db: AsyncSession = Depends(get_db),
) -> dict[str, bool]:
    return {"available": await get_user_by_username(db, username) is None}


@router.put("/profile", response_model=UserOut, dependencies=[Depends(enforce_csrf_protection)])
async def update_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Update the caller's profile fields; a taken username is a conflict."""
    update_data = payload.model_dump(exclude_unset=True)
    if not update_data:
        return user

    new_username = update_data.get("username")
    if new_username and new_username != user.username:
        if await get_user_by_username(db, new_username) is not None:
            raise Conflict("Username is already taken")

    for field, value in update_data.items():
        setattr(user, field, value)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.warning("IntegrityError while updating profile for user %s", user.id, exc_info=True)
        raise Conflict("Username is already taken") from None

    return user


@router.get("/{username}", response_model=UserProfileOut)
async def get_profile(username: str, db: AsyncSession = Depends(get_db)) -> UserProfileOut:
    user = await _get_user_or_404(db, username)
    stats = await get_user_stats(db, user)
    profile = UserOut.model_validate(user)
    return UserProfileOut(**profile.model_dump(), stats=UserStats(**stats))


@router.get("/{username}/builds", response_model=BuildPage)
async def get_user_builds(
    username: str,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
) -> BuildPage:
    """Published builds by one author, newest first."""
    user = await _get_user_or_404(db, username)
    result = await build_services.list_builds(
        db,
        build_services.BuildFilter(user_id=user.id),
        page=page,
        limit=limit,
    )
    return BuildPage(
        builds=[to_list_item(row["build"], row["likes"], row["comments"]) for row in result["builds"]],
        total_pages=result["total_pages"],
        current_page=result["current_page"],
        total_builds=result["total_builds"],
    )
