"""Pytest fixtures for testing."""
import os
from collections.abc import AsyncGenerator, Generator
from unittest.mock import MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from db.session import Database
from models.base import Base
from models.user import User
from tests.helpers import create_authenticated_client, signing_key

TEST_DATABASE_URL = "sqlite+aiosqlite://"

# Must be set before any app imports that trigger Settings validation.
# Tests run in test mode and DEV_MODE (bypasses auth) regardless of local .env
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL_TEST"] = TEST_DATABASE_URL
os.environ["DEV_MODE"] = "true"
os.environ["MAINTENANCE_MODE"] = "false"


def _enable_sqlite_savepoints(database: Database) -> None:
    """
    Let SQLAlchemy drive transactions itself so SAVEPOINTs work on SQLite.

    The sqlite3 driver otherwise issues its own BEGIN/COMMIT, which breaks
    nested transactions. Foreign keys are off by default in SQLite.
    """

    @event.listens_for(database.engine.sync_engine, "connect")
    def do_connect(dbapi_connection, _connection_record) -> None:  # noqa: ANN001
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(database.engine.sync_engine, "begin")
    def do_begin(conn) -> None:  # noqa: ANN001
        conn.exec_driver_sql("BEGIN")


@pytest.fixture
async def database() -> AsyncGenerator[Database]:
    """Create a fresh in-memory database with all tables for one test."""
    database = Database(TEST_DATABASE_URL, poolclass=StaticPool)
    _enable_sqlite_savepoints(database)

    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield database

    await database.dispose()


@pytest.fixture
async def db_connection(database: Database) -> AsyncGenerator[AsyncConnection]:
    """
    Create a connection with a transaction that will be rolled back after the test.

    This provides test isolation - each test runs in its own transaction
    that is rolled back, so tests don't affect each other.
    """
    async with database.engine.connect() as connection:
        transaction = await connection.begin()
        try:
            yield connection
        finally:
            await transaction.rollback()


@pytest.fixture
async def db_session(db_connection: AsyncConnection) -> AsyncGenerator[AsyncSession]:
    """
    Create an async session bound to the test transaction.

    Uses begin_nested() for savepoints, allowing the session's flush/commit
    to work within our outer test transaction.
    """
    session_factory = async_sessionmaker(
        bind=db_connection,
        class_=AsyncSession,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )

    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(
    db_session: AsyncSession,
) -> AsyncGenerator[AsyncClient]:
    """Create a test client (DEV_MODE, local dev user) with database session override."""
    # Clear the settings cache so it picks up the test environment
    from core.config import get_settings

    get_settings.cache_clear()

    from api.main import app
    from db.session import get_async_session

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_async_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def jwks_client() -> Generator[MagicMock]:
    """Serve the test public key instead of fetching Clerk's JWKS."""
    mock_client = MagicMock()
    mock_client.get_signing_key_from_jwt.return_value = MagicMock(
        key=signing_key.public_key(),
    )
    with patch("core.auth.get_jwks_client", return_value=mock_client):
        yield mock_client


@pytest.fixture
async def unauthenticated_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient]:
    """Client with real authentication enabled and no bearer token."""
    async with create_authenticated_client(db_session, token=None) as test_client:
        yield test_client


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a synced user for service-level tests."""
    user = User(id="user_test", email="test@example.com")
    db_session.add(user)
    await db_session.flush()
    return user
