"""
Pytest fixtures for test database, client, notifier and caller identities.

Each test gets a fresh schema. By default that is a throwaway SQLite file;
set TEST_DATABASE_URL to run the suite against PostgreSQL instead.
"""

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from esports_scheduler.main import app
from esports_scheduler.db.base import Base
from esports_scheduler.db.session import get_db
from esports_scheduler.core.security import create_access_token
from esports_scheduler.models.computer import Computer
from esports_scheduler.models.team import Team
from esports_scheduler.models.user import User, ROLE_ADMIN, ROLE_USER
from esports_scheduler.scripts.seed import seed
from esports_scheduler.services.booking_engine import BookingEngine
from esports_scheduler.services.interfaces.memory_notifier import InMemoryNotifier
from esports_scheduler.services.notifier_factory import get_notifier

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL")


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'scheduler_test.db'}"
    engine = create_async_engine(url, echo=False, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def notifier() -> InMemoryNotifier:
    return InMemoryNotifier(queue_size=10)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, notifier: InMemoryNotifier) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the DB session and notifier swapped for test instances."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def seeded(db_session: AsyncSession) -> None:
    """15 computers, 10 teams, 6 admins - the same data the seed command writes."""
    await seed(db_session)


@pytest_asyncio.fixture
async def computers(db_session: AsyncSession, seeded) -> dict[str, int]:
    """Label to id. Plain ids stay usable after the engine rolls back and expires ORM state."""
    result = await db_session.execute(select(Computer.label, Computer.id))
    return dict(result.all())


@pytest_asyncio.fixture
async def inactive_computer_id(db_session: AsyncSession, seeded) -> int:
    computer = Computer(label="PC-99", is_active=False)
    db_session.add(computer)
    await db_session.commit()
    await db_session.refresh(computer)
    return computer.id


@pytest_asyncio.fixture
async def team_id(db_session: AsyncSession, seeded) -> str:
    team = await db_session.get(Team, "team-valorant-a")
    return team.id


@pytest_asyncio.fixture
async def other_team_id(db_session: AsyncSession, seeded) -> str:
    team = await db_session.get(Team, "team-cs2-b")
    return team.id


@pytest_asyncio.fixture
async def admin_id(db_session: AsyncSession) -> str:
    user = User(id="admin-1", email="admin@example.com", name="Admin", role=ROLE_ADMIN)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user.id


@pytest_asyncio.fixture
async def second_admin_id(db_session: AsyncSession) -> str:
    user = User(id="admin-2", email="admin2@example.com", name="Second Admin", role=ROLE_ADMIN)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user.id


@pytest_asyncio.fixture
async def viewer_id(db_session: AsyncSession) -> str:
    user = User(id="viewer-1", email="viewer@example.com", name="Viewer", role=ROLE_USER)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user.id


def headers_for(user_id: str, role: str) -> dict:
    token = create_access_token(data={"sub": user_id, "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def admin_headers(admin_id: str) -> dict:
    return headers_for(admin_id, ROLE_ADMIN)


@pytest_asyncio.fixture
async def second_admin_headers(second_admin_id: str) -> dict:
    return headers_for(second_admin_id, ROLE_ADMIN)


@pytest_asyncio.fixture
async def viewer_headers(viewer_id: str) -> dict:
    return headers_for(viewer_id, ROLE_USER)


@pytest.fixture
def booking_engine(db_session: AsyncSession, notifier: InMemoryNotifier) -> BookingEngine:
    return BookingEngine(db_session, notifier)
