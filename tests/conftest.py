from __future__ import annotations

import os
import tempfile
from typing import Any, AsyncIterator

import pytest

_TMP_DIR = tempfile.mkdtemp(prefix="buildhub-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TMP_DIR}/unused.db")
os.environ.setdefault("LOG_DIR", os.path.join(_TMP_DIR, "logs"))
os.environ.setdefault("CSRF_SECRET", "test-csrf-secret")
os.environ.setdefault("STORAGE_JWT_SECRET", "test-storage-secret")
os.environ.setdefault("ENV", "development")

from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from buildhub.core.cookies import SESSION_COOKIE_NAME, make_session_value  # noqa: E402
from buildhub.core.database import build_engine, build_session_factory, get_db, init_db  # noqa: E402
from buildhub.core.rate_limit import RateLimiter  # noqa: E402
from buildhub.domain.users.models import User  # noqa: E402
from main import create_app  # noqa: E402


class FakeClock:
    """Manually advanced clock returning Unix seconds."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    await init_db(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest.fixture
def app(session_factory) -> FastAPI:
    application = create_app(rate_limiter=RateLimiter(prune_probability=0))

    async def _get_db_override() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = _get_db_override
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def create_user(session_factory):
    async def _create(provider_id: str = "user_abc", **fields: Any) -> User:
        fields.setdefault("email", f"{provider_id}@example.com")
        fields.setdefault("username", provider_id)
        async with session_factory() as session:
            user = User(provider_id=provider_id, **fields)
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _create


def sign_in(client: AsyncClient, provider_id: str = "user_abc", **claims: Any) -> None:
    """Attach an identity-provider session cookie to the client."""
    claims.setdefault("email", f"{provider_id}@example.com")
    client.cookies.set(SESSION_COOKIE_NAME, make_session_value({"provider_id": provider_id, **claims}))


async def csrf_headers(client: AsyncClient) -> dict[str, str]:
    """Fetch a CSRF token (the cookie lands in the client jar) and return the matching header."""
    response = await client.get("/api/csrf-token")
    assert response.status_code == 200, response.text
    return {"X-CSRF-Token": response.json()["csrfToken"]}


BUILD_PAYLOAD: dict[str, Any] = {
    "title": "Bleed Samurai",
    "description": "Double katanas with blood affinity and plenty of vigor.",
    "level": 150,
    "build_type": "bleed",
    "vigor": 60,
    "mind": 15,
    "endurance": 30,
    "strength": 18,
    "dexterity": 45,
    "intelligence": 9,
    "faith": 8,
    "arcane": 45,
    "weapons": ["Uchigatana", "Nagakiba"],
    "armor": ["Land of Reeds set"],
    "talismans": ["Lord of Blood's Exultation"],
    "spells": [],
    "is_published": True,
}
