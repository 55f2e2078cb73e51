"""
Pytest configuration and fixtures for auth service testing.
Provides database, collaborator and application fixtures with proper cleanup.
"""
import os

# Settings are read on first import of the package
os.environ.setdefault("SECRET_KEY", "test-signing-key-abcdefghijklmnopqrstuvwxyzABCD")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("EMAIL_PROVIDER", "log")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("CLIENT_URL", "http://localhost:5173")

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from unittest.mock import AsyncMock
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from token_auth.core.config import settings
from token_auth.core.database import get_db
from token_auth.main import create_app
from token_auth.models.base import Base
from token_auth.repositories.account_repository import AccountRepository
from token_auth.services.auth.token_service import TokenService
from token_auth.services.auth_service import AuthService

from tests.fakes import FakeClock, InMemoryAccountRepository, RecordingNotificationDispatcher

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async_session = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def notifications() -> RecordingNotificationDispatcher:
    return RecordingNotificationDispatcher()


@pytest.fixture
def account_repository() -> AccountRepository:
    return AccountRepository()


@pytest.fixture
def memory_repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(secure_cookies=False)


@pytest.fixture
def memory_auth_service(memory_repository, notifications, token_service, clock) -> AuthService:
    """AuthService over the in-memory store with a controllable clock."""
    return AuthService(
        account_repository=memory_repository,
        notification_dispatcher=notifications,
        token_service=token_service,
        clock=clock
    )


@pytest.fixture
def mock_db():
    return AsyncMock(spec=AsyncSession)


@pytest.fixture
def app(db_session, notifications, account_repository):
    """Application wired to the test database and the recording dispatcher."""
    application = create_app(
        settings=settings,
        notification_dispatcher=notifications,
        account_repository=account_repository
    )

    async def _override_get_db():
        yield db_session

    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_url():
    def _url(path: str) -> str:
        return f"{settings.API_PREFIX}{path}"
    return _url
