from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from buildhub.core.config import settings

# Deleting a user or build relies on ON DELETE CASCADE, which sqlite only
# enforces with foreign_keys on.
SQLITE_PRAGMAS = (
    "PRAGMA foreign_keys=ON",
    "PRAGMA busy_timeout=5000",
)


def build_engine(url: str, **kwargs) -> AsyncEngine:
    """Create an async engine, applying the sqlite pragmas on every new connection."""
    async_engine = create_async_engine(url, future=True, **kwargs)

    if make_url(url).get_backend_name() == "sqlite":

        @event.listens_for(async_engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore[arg-type]
            cursor = dbapi_connection.cursor()
            for pragma in SQLITE_PRAGMAS:
                cursor.execute(pragma)
            cursor.close()

    return async_engine


def build_session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
AsyncSessionLocal = build_session_factory(engine)

Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    """Yield a session per request, rolling back whatever a failed handler left pending."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


def import_models() -> None:
    """Register every model on ``Base.metadata``."""
    from buildhub.domain.builds import models as _builds  # noqa: F401
    from buildhub.domain.comments import models as _comments  # noqa: F401
    from buildhub.domain.likes import models as _likes  # noqa: F401
    from buildhub.domain.users import models as _users  # noqa: F401


async def init_db(async_engine: AsyncEngine | None = None) -> None:
    """Create any missing tables; Alembic owns schema changes after that."""
    import_models()
    async with (async_engine or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
