"""Queries and mutations for builds."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from buildhub.core.errors import BuildNotFound, Forbidden
from buildhub.domain.builds.models import Build
from buildhub.domain.builds.schemas import BuildForm
from buildhub.domain.comments.models import Comment
from buildhub.domain.likes.models import Like
from buildhub.domain.users.models import User

HIGH_STAT_THRESHOLD = 40
BALANCED_STAT_FLOOR = 20

_HIGH_STAT_COLUMNS = {
    "high-vigor": Build.vigor,
    "high-strength": Build.strength,
    "high-dexterity": Build.dexterity,
    "high-intelligence": Build.intelligence,
    "high-faith": Build.faith,
    "high-arcane": Build.arcane,
}


@dataclass
class BuildFilter:
    search: Optional[str] = None
    build_type: Optional[str] = None
    min_level: Optional[int] = None
    max_level: Optional[int] = None
    user_id: Optional[str] = None
    is_published: bool = True
    stats: Sequence[str] = field(default_factory=tuple)


def _like_count():
    return (
        select(func.count(Like.id))
        .where(Like.build_id == Build.id)
        .correlate(Build)
        .scalar_subquery()
    )


def _comment_count():
    return (
        select(func.count(Comment.id))
        .where(Comment.build_id == Build.id)
        .correlate(Build)
        .scalar_subquery()
    )


def _filter_conditions(build_filter: BuildFilter) -> list[Any]:
    conditions: list[Any] = [Build.is_published.is_(build_filter.is_published)]

    if build_filter.build_type:
        conditions.append(Build.build_type == build_filter.build_type)
    if build_filter.min_level is not None:
        conditions.append(Build.level >= build_filter.min_level)
    if build_filter.max_level is not None:
        conditions.append(Build.level <= build_filter.max_level)
    if build_filter.user_id:
        conditions.append(Build.user_id == build_filter.user_id)

    if build_filter.search:
        pattern = f"%{build_filter.search.lower()}%"
        conditions.append(
            or_(
                func.lower(Build.title).like(pattern),
                func.lower(Build.description).like(pattern),
            )
        )

    stat_conditions = []
    for stat in build_filter.stats:
        if stat in _HIGH_STAT_COLUMNS:
            stat_conditions.append(_HIGH_STAT_COLUMNS[stat] >= HIGH_STAT_THRESHOLD)
        elif stat == "balanced":
            stat_conditions.append(
                and_(
                    Build.strength >= BALANCED_STAT_FLOOR,
                    Build.dexterity >= BALANCED_STAT_FLOOR,
                    Build.intelligence >= BALANCED_STAT_FLOOR,
                    Build.faith >= BALANCED_STAT_FLOOR,
                )
            )
    if stat_conditions:
        conditions.append(or_(*stat_conditions))

    return conditions


def _order_by(sort: str) -> list[Any]:
    if sort == "oldest":
        return [Build.created_at.asc()]
    if sort == "popular":
        return [_like_count().desc(), Build.created_at.desc()]
    if sort == "comments":
        return [_comment_count().desc(), Build.created_at.desc()]
    return [Build.created_at.desc()]


async def list_builds(
    db: AsyncSession,
    build_filter: BuildFilter,
    sort: str = "newest",
    page: int = 1,
    limit: int = 10,
) -> dict[str, Any]:
    """Return one page of builds with author info and like/comment counts."""
    conditions = _filter_conditions(build_filter)

    total_builds = await db.scalar(select(func.count(Build.id)).where(*conditions)) or 0

    result = await db.execute(
        select(Build, _like_count().label("likes"), _comment_count().label("comments"))
        .options(selectinload(Build.user))
        .where(*conditions)
        .order_by(*_order_by(sort))
        .offset((page - 1) * limit)
        .limit(limit)
    )

    builds = []
    for build, likes, comments in result.all():
        builds.append({"build": build, "likes": likes or 0, "comments": comments or 0})

    return {
        "builds": builds,
        "total_pages": math.ceil(total_builds / limit) if limit else 0,
        "current_page": page,
        "total_builds": total_builds,
    }


async def get_build(db: AsyncSession, build_id: str) -> Build:
    result = await db.execute(
        select(Build).options(selectinload(Build.user)).where(Build.id == build_id)
    )
    build = result.scalar_one_or_none()
    if build is None:
        raise BuildNotFound()
    return build


async def count_engagement(db: AsyncSession, build_id: str) -> tuple[int, int]:
    likes = await db.scalar(select(func.count(Like.id)).where(Like.build_id == build_id))
    comments = await db.scalar(select(func.count(Comment.id)).where(Comment.build_id == build_id))
    return likes or 0, comments or 0


async def get_owned_build(db: AsyncSession, build_id: str, user: User) -> Build:
    build = await get_build(db, build_id)
    if build.user_id != user.id:
        raise Forbidden("You do not own this build")
    return build


async def create_build(db: AsyncSession, payload: BuildForm, user: User) -> Build:
    build = Build(user_id=user.id, **payload.model_dump())
    db.add(build)
    await db.commit()
    await db.refresh(build)
    return build


async def update_build(db: AsyncSession, build_id: str, payload: BuildForm, user: User) -> Build:
    build = await get_owned_build(db, build_id, user)
    for name, value in payload.model_dump().items():
        setattr(build, name, value)
    await db.commit()
    await db.refresh(build)
    return build


async def delete_build(db: AsyncSession, build_id: str, user: User) -> None:
    build = await get_owned_build(db, build_id, user)
    await db.delete(build)
    await db.commit()
