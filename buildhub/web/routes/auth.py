import hashlib
import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from buildhub.core.cookies import clear_session_cookie
from buildhub.core.csrf import enforce_csrf_protection
from buildhub.core.database import get_db
from buildhub.core.session import CallerIdentity, get_caller, get_optional_caller
from buildhub.core.storage_tokens import StorageTokenIssuer, get_storage_token_issuer
from buildhub.domain.users.schemas import UserOut
from buildhub.domain.users.services import get_user_by_provider_id, sync_user

router = APIRouter()
security_logger = logging.getLogger("buildhub.security")


@router.get("/api/auth/storage-token")
async def get_storage_token(
    caller: CallerIdentity | None = Depends(get_optional_caller),
    issuer: StorageTokenIssuer = Depends(get_storage_token_issuer),
    db: AsyncSession = Depends(get_db),
) -> dict[str, str]:
    """Return a short-lived bearer token for the object-storage service.

    Clients re-request it before it expires (every 25 minutes for the default
    30 minute lifetime).
    """

    async def lookup(provider_id: str):
        return await get_user_by_provider_id(db, provider_id)

    return {"token": await issuer.issue(caller, lookup)}


@router.post("/api/sync-user", response_model=UserOut, dependencies=[Depends(enforce_csrf_protection)])
async def sync_current_user(
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Create or refresh the caller's local record from the identity provider's claims."""
    user = await sync_user(db, caller)
    hashed_email = hashlib.sha256(user.email.encode()).hexdigest()[:12]
    security_logger.info("User synchronized [user_id=%s, email_hash=%s]", user.id, hashed_email)
    return user


@router.get("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(response: Response) -> None:
    """Log user out by clearing the session and CSRF cookies; the client navigates itself."""
    clear_session_cookie(response)
