"""
Shared pytest configuration for backend tests.

Every test gets its own SQLite file under pytest's tmp_path, so tests never
touch a development database and need no external server.
"""

import os

# Must be set before teamhub.api is imported: disables rate limiting
os.environ["ENV"] = "test"

import httpx  # noqa: E402
import pytest_asyncio  # noqa: E402

from teamhub.database.db import Database  # noqa: E402
from teamhub.database.models import Role  # noqa: E402
from teamhub.services import auth_service, user_service  # noqa: E402


@pytest_asyncio.fixture(scope="function")
async def database(tmp_path):
    """An isolated database with all tables created."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'teamhub_test.db'}")
    await db.init_database()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def app(database):
    from teamhub.api.main import create_app

    return create_app(database=database)


@pytest_asyncio.fixture
async def client(app):
    """HTTP client bound to the app in-process (no lifespan, tables already exist)."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _create_user(session, email, role, name, password="secret123"):
    return await user_service.create_user(
        session,
        email=email,
        password_hash=auth_service.hash_password(password),
        name=name,
        role=role,
    )


def token_for(user) -> str:
    return auth_service.create_access_token(
        {"user_id": user["id"], "email": user["email"], "role": user["role"], "name": user["name"]}
    )


def auth_headers(user):
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest_asyncio.fixture
async def trainer(db_session):
    return await _create_user(db_session, "coach@example.com", Role.TRAINER, "Coach Carter")


@pytest_asyncio.fixture
async def parent(db_session):
    return await _create_user(db_session, "parent@example.com", Role.PARENT, "Pat Parent")


@pytest_asyncio.fixture
async def player_user(db_session):
    return await _create_user(db_session, "kid@example.com", Role.PLAYER, "Kim Kid")
