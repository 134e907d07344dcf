"""Pytest configuration and fixtures"""
import os

# must be in place before datewrapped.core.config is imported
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["REDIS_URL"] = ""
os.environ["DEBUG"] = "false"
os.environ["JWT_SECRET"] = "test-secret-" + "x" * 52
os.environ["OPENAI_API_KEY"] = "test-key"
os.environ["RATE_LIMIT_PER_MINUTE"] = "100000"
os.environ["GENERATE_RATE_LIMIT_PER_MINUTE"] = "100000"

from types import SimpleNamespace
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import datewrapped.models  # noqa: F401
from datewrapped.core.database import Base, get_db
from datewrapped.main import app
from datewrapped.services import wrapped_service


@pytest.fixture
async def test_engine():
    """In-memory SQLite database, one per test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app, with get_db pointed at the test database"""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _sign_up(client: AsyncClient, email: str) -> dict:
    response = await client.post("/api/auth/signup", json={"email": email, "password": "correct-horse"})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
async def tokens(client) -> dict:
    """A freshly signed-up user: access_token, refresh_token, user_id"""
    return await _sign_up(client, "alex@example.com")


@pytest.fixture
def auth_headers(tokens) -> dict:
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
async def other_auth_headers(client) -> dict:
    data = await _sign_up(client, "sam@example.com")
    return {"Authorization": f"Bearer {data['access_token']}"}


@pytest.fixture
def sample_entry() -> dict:
    return {
        "person_name": "Jordan",
        "platform": "Hinge",
        "num_dates": 3,
        "total_cost": 120.5,
        "avg_duration": 2.5,
        "rating": 4,
        "hotness": 8,
        "outcome": "Ongoing",
        "occupation": "Architect",
        "age": 31,
        "relationship_status": "Single",
        "status": "Active",
        "red_flags": ["late"],
        "green_flags": ["funny", "kind"],
        "notes": "Met at a coffee shop",
    }


class FakeCompletions:
    """Stands in for client.chat.completions"""

    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def fake_llm(monkeypatch):
    """Install a fake chat completion client; returns its completions object"""

    def install(content=None, error=None) -> FakeCompletions:
        completions = FakeCompletions(content=content, error=error)
        monkeypatch.setattr(wrapped_service, "client", SimpleNamespace(chat=SimpleNamespace(completions=completions)))
        return completions

    return install
