"""API routes for build comments."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from buildhub.core.config import settings
from buildhub.core.csrf import enforce_csrf_protection
from buildhub.core.database import get_db
from buildhub.core.rate_limit import rate_limit
from buildhub.core.session import get_current_user
from buildhub.domain.comments import services
from buildhub.domain.comments.models import Comment
from buildhub.domain.comments.schemas import CommentForm, CommentOut
from buildhub.domain.users.models import User

build_comments_router = APIRouter()
router = APIRouter()


@build_comments_router.get("/{build_id}/comments", response_model=list[CommentOut])
async def list_comments(build_id: str, db: AsyncSession = Depends(get_db)) -> list[Comment]:
    return await services.list_comments(db, build_id)


@build_comments_router.post(
    "/{build_id}/comments",
    response_model=CommentOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[
        Depends(rate_limit(settings.COMMENT_RATE_LIMIT_MAX, settings.COMMENT_RATE_LIMIT_WINDOW_MS)),
        Depends(enforce_csrf_protection),
    ],
)
async def create_comment(
    build_id: str,
    payload: CommentForm,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Comment:
    """Post a comment on a build. Content is HTML-escaped before it is stored."""
    return await services.create_comment(db, build_id, payload.content, user)


@router.put(
    "/{comment_id}",
    response_model=CommentOut,
    dependencies=[
        Depends(rate_limit(settings.COMMENT_RATE_LIMIT_MAX, settings.COMMENT_RATE_LIMIT_WINDOW_MS)),
        Depends(enforce_csrf_protection),
    ],
)
async def update_comment(
    comment_id: str,
    payload: CommentForm,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Comment:
    return await services.update_comment(db, comment_id, payload.content, user)


@router.delete(
    "/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[
        Depends(rate_limit(settings.COMMENT_RATE_LIMIT_MAX, settings.COMMENT_RATE_LIMIT_WINDOW_MS)),
        Depends(enforce_csrf_protection),
    ],
)
async def delete_comment(
    comment_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    await services.delete_comment(db, comment_id, user)
