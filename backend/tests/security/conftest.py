"""
Security test fixtures.

These fixtures enable testing security scenarios like IDOR (Insecure Direct
Object Reference) by creating multiple users and their associated data.
Clients here authenticate with real RS256 session tokens (DEV_MODE off),
verified against a test signing key instead of Clerk's JWKS.
"""
from collections.abc import AsyncGenerator

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from models.problem import Difficulty, Problem
from models.user import User
from schemas.problem import ProblemCreate
from services.problem_service import create_problem
from tests.helpers import create_authenticated_client, make_session_token


@pytest.fixture
async def user_a(db_session: AsyncSession) -> User:
    """Create the first test user (User A)."""
    user = User(id="user_a", email="user-a@test.com")
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def user_b(db_session: AsyncSession) -> User:
    """Create a second test user (User B) for IDOR testing."""
    user = User(id="user_b", email="user-b@test.com")
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def user_a_problem(db_session: AsyncSession, user_a: User) -> Problem:
    """Create a problem belonging to User A."""
    return await create_problem(
        db_session,
        user_a.id,
        ProblemCreate(
            title="User A's Private Problem",
            url="https://leetcode.com/problems/user-a/",
            difficulty=Difficulty.HARD,
            language_used="Python",
            solution_notes="This should only be accessible to User A",
            categories=["Secret"],
        ),
    )


@pytest.fixture
async def client_as_user_b(
    db_session: AsyncSession,
    user_b: User,
    jwks_client: object,  # noqa: ARG001
) -> AsyncGenerator[AsyncClient]:
    """Create a test client authenticated as User B."""
    async with create_authenticated_client(
        db_session, make_session_token(user_b.id),
    ) as test_client:
        yield test_client


@pytest.fixture
async def client_as_user_a(
    db_session: AsyncSession,
    user_a: User,
    jwks_client: object,  # noqa: ARG001
) -> AsyncGenerator[AsyncClient]:
    """Create a test client authenticated as User A."""
    async with create_authenticated_client(
        db_session, make_session_token(user_a.id),
    ) as test_client:
        yield test_client
