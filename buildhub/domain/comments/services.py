"""Queries and mutations for comments."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from buildhub.core.errors import CommentNotFound, Forbidden
from buildhub.core.validation import sanitize_text
from buildhub.domain.builds.services import get_build
from buildhub.domain.comments.models import Comment
from buildhub.domain.users.models import User


async def list_comments(db: AsyncSession, build_id: str) -> list[Comment]:
    result = await db.execute(
        select(Comment)
        .options(selectinload(Comment.user))
        .where(Comment.build_id == build_id)
        .order_by(Comment.created_at.desc())
    )
    return list(result.scalars().all())


async def _get_comment(db: AsyncSession, comment_id: str) -> Comment:
    result = await db.execute(
        select(Comment).options(selectinload(Comment.user)).where(Comment.id == comment_id)
    )
    comment = result.scalar_one_or_none()
    if comment is None:
        raise CommentNotFound()
    return comment


async def _get_owned_comment(db: AsyncSession, comment_id: str, user: User) -> Comment:
    comment = await _get_comment(db, comment_id)
    if comment.user_id != user.id:
        raise Forbidden("You do not own this comment")
    return comment


async def create_comment(db: AsyncSession, build_id: str, content: str, user: User) -> Comment:
    build = await get_build(db, build_id)
    comment = Comment(content=sanitize_text(content), build_id=build.id, user=user)
    db.add(comment)
    await db.commit()
    return comment


async def update_comment(db: AsyncSession, comment_id: str, content: str, user: User) -> Comment:
    comment = await _get_owned_comment(db, comment_id, user)
    comment.content = sanitize_text(content)
    await db.commit()
    return comment


async def delete_comment(db: AsyncSession, comment_id: str, user: User) -> None:
    comment = await _get_owned_comment(db, comment_id, user)
    await db.delete(comment)
    await db.commit()
