"""JSON API routes for security features."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from buildhub.core.config import settings
from buildhub.core.csrf import CsrfGuard, get_csrf_guard
from buildhub.core.rate_limit import rate_limit
from buildhub.core.session import CallerIdentity, get_caller
from buildhub.web.routes import builds, comments, likes, users

router = APIRouter()

router.include_router(builds.router, prefix="/builds", tags=["builds"])
router.include_router(comments.build_comments_router, prefix="/builds", tags=["comments"])
router.include_router(likes.router, prefix="/builds", tags=["likes"])
router.include_router(comments.router, prefix="/comments", tags=["comments"])
router.include_router(users.router, prefix="/users", tags=["users"])


@router.get(
    "/csrf-token",
    dependencies=[Depends(rate_limit(settings.CSRF_RATE_LIMIT_MAX, settings.CSRF_RATE_LIMIT_WINDOW_MS))],
)
async def get_csrf_token(
    response: Response,
    caller: CallerIdentity = Depends(get_caller),
    guard: CsrfGuard = Depends(get_csrf_guard),
) -> dict[str, str]:
    """Issue a CSRF token: set as an HttpOnly cookie and returned for the X-CSRF-Token header."""
    return {"csrfToken": guard.issue(response)}
