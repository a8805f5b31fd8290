import datetime as dt
import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from arena.client.api import ArenaClient
from arena.core import clock
from arena.core import db as db_module
from arena.core.security import create_access_token, hash_password
from arena.main import app
from arena.models.user import User


TEST_DB_URL = "sqlite://:memory:?cache=shared"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest_asyncio.fixture
async def client():
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    Startup events are not run; the DB is initialized here instead.
    """
    await _init_test_db()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def create_user(client):
    """
    Factory fixture to create users directly via ORM.
    """

    async def _create_user(password: str = "UserPass!23", username: str | None = None) -> tuple[User, str]:
        name = username or f"user_{uuid.uuid4().hex[:6]}"
        user = await User.create(
            username=name,
            email=f"{name}@example.com",
            password_hash=hash_password(password),
            last_token_reset=clock.utcnow(),
        )
        return user, password

    return _create_user


@pytest.fixture
def auth_headers():
    """
    Build Authorization headers for a user without going through login.
    """

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}

    return _headers


@pytest.fixture
def frozen_clock(monkeypatch):
    """
    Move the backend clock. Call with an aware datetime to pin "now";
    the returned setter can be called again to jump forward.
    """

    def _set(now: dt.datetime) -> None:
        monkeypatch.setattr(clock, "utcnow", lambda: now)

    return _set


@pytest_asyncio.fixture
async def api(client):
    """ArenaClient talking to the app in-process, signed in as a fresh user."""
    async with ArenaClient("http://testserver", transport=ASGITransport(app=app)) as arena:
        await arena.signup("session@example.com", "session_user", "secret123")
        yield arena
