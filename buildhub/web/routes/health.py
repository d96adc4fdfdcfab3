import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from buildhub.core.config import settings
from buildhub.core.database import get_db

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", summary="Health check")
async def health(db: AsyncSession = Depends(get_db)) -> dict[str, str]:
    """Touch the database and report whether both signing secrets are configured.

    Missing secrets do not fail the check; requests that need them fail with 500.
    """
    try:
        await db.execute(text("SELECT 1"))
        db_status = "ok"
    except Exception as exc:  # noqa: BLE001
        db_status = "error"
        logger.exception("Database healthcheck failed", exc_info=exc)

    signing_status = "ok" if settings.CSRF_SECRET and settings.STORAGE_JWT_SECRET else "missing"

    return {"status": "ok", "database": db_status, "signing": signing_status}
