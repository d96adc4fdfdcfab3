from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from buildhub.core.config import settings
from buildhub.core.csrf import CsrfGuard
from buildhub.core.database import init_db
from buildhub.core.errors import ServiceError, service_error_handler, validation_error_handler
from buildhub.core.logging_config import setup_logging
from buildhub.core.middleware import RequestContextMiddleware, SecurityHeadersMiddleware
from buildhub.core.rate_limit import RateLimiter
from buildhub.core.storage_tokens import StorageTokenIssuer
from buildhub.web.routes import api, auth, health


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize app on startup."""
    await init_db()
    yield


def create_app(
    rate_limiter: RateLimiter | None = None,
    csrf_guard: CsrfGuard | None = None,
    storage_token_issuer: StorageTokenIssuer | None = None,
) -> FastAPI:
    """Build the application; process-wide collaborators live on ``app.state``."""
    app = FastAPI(
        title=settings.APP_NAME,
        description="Create, browse and discuss character builds",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()
    app.state.csrf_guard = csrf_guard if csrf_guard is not None else CsrfGuard()
    app.state.storage_token_issuer = (
        storage_token_issuer if storage_token_issuer is not None else StorageTokenIssuer()
    )

    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.ALLOWED_HOSTS,
    )
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(auth.router, tags=["auth"])
    app.include_router(api.router, prefix="/api", tags=["api"])
    app.include_router(health.router, tags=["health"])

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
