"""API routes for liking builds."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from buildhub.core.csrf import enforce_csrf_protection
from buildhub.core.database import get_db
from buildhub.core.session import get_current_user
from buildhub.domain.likes import services
from buildhub.domain.users.models import User

router = APIRouter()


@router.get("/{build_id}/like")
async def get_like_status(
    build_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, bool]:
    return {"liked": await services.has_liked(db, build_id, user)}


@router.post("/{build_id}/like", dependencies=[Depends(enforce_csrf_protection)])
async def toggle_like(
    build_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, bool]:
    """Like the build, or remove the caller's like if already present."""
    return {"liked": await services.toggle_like(db, build_id, user)}
