"""API routes for creating, browsing and editing builds."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from buildhub.core.config import settings
from buildhub.core.csrf import enforce_csrf_protection
from buildhub.core.database import get_db
from buildhub.core.session import get_current_user
from buildhub.domain.builds import services
from buildhub.domain.builds.models import Build
from buildhub.domain.builds.schemas import (
    BuildCounts,
    BuildForm,
    BuildListItem,
    BuildOut,
    BuildPage,
    BuildSort,
    BuildType,
    StatFilter,
)
from buildhub.domain.users.models import User

logger = logging.getLogger(__name__)

router = APIRouter()


def to_list_item(build: Build, likes: int, comments: int) -> BuildListItem:
    item = BuildListItem.model_validate(build)
    item.counts = BuildCounts(likes=likes, comments=comments)
    return item


@router.get("/", response_model=BuildPage)
async def list_builds(
    search: Optional[str] = Query(None, max_length=100),
    build_type: Optional[BuildType] = None,
    min_level: Optional[int] = Query(None, ge=1),
    max_level: Optional[int] = Query(None, le=713),
    user_id: Optional[str] = None,
    stats: Optional[list[StatFilter]] = Query(None),
    sort: BuildSort = "newest",
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
) -> BuildPage:
    """Return published builds matching the filters, one page at a time."""
    build_filter = services.BuildFilter(
        search=search,
        build_type=build_type,
        min_level=min_level,
        max_level=max_level,
        user_id=user_id,
        stats=stats or (),
    )
    result = await services.list_builds(db, build_filter, sort=sort, page=page, limit=limit)
    return BuildPage(
        builds=[to_list_item(row["build"], row["likes"], row["comments"]) for row in result["builds"]],
        total_pages=result["total_pages"],
        current_page=result["current_page"],
        total_builds=result["total_builds"],
    )


@router.get("/{build_id}", response_model=BuildListItem)
async def get_build(build_id: str, db: AsyncSession = Depends(get_db)) -> BuildListItem:
    build = await services.get_build(db, build_id)
    likes, comments = await services.count_engagement(db, build_id)
    return to_list_item(build, likes, comments)


@router.post(
    "/",
    response_model=BuildOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_csrf_protection)],
)
async def create_build(
    payload: BuildForm,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Build:
    build = await services.create_build(db, payload, user)
    logger.info("Build %s created by user %s", build.id, user.id)
    return build


@router.put("/{build_id}", response_model=BuildOut, dependencies=[Depends(enforce_csrf_protection)])
async def update_build(
    build_id: str,
    payload: BuildForm,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Build:
    """Replace a build's contents; only its author may do this."""
    return await services.update_build(db, build_id, payload, user)


@router.delete(
    "/{build_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(enforce_csrf_protection)],
)
async def delete_build(
    build_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    await services.delete_build(db, build_id, user)
    logger.info("Build %s deleted by user %s", build_id, user.id)
