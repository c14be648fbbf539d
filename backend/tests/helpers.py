"""Shared helpers for tests that authenticate with real session tokens or sign webhooks."""
import base64
import json
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from svix.webhooks import Webhook

from core.config import Settings, get_settings
from models.user import User

TEST_ISSUER = "https://clerk.leetlog.test"
TEST_AUTHORIZED_PARTY = "http://localhost:3000"
TEST_WEBHOOK_SECRET = "whsec_" + base64.b64encode(b"leetlog-test-webhook-secret-0001").decode()

# Constant for non-existent entity ID
MISSING_PROBLEM_ID = 999999

signing_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)


def make_session_token(
    sub: str,
    *,
    expires_in: timedelta = timedelta(minutes=5),
    azp: str = TEST_AUTHORIZED_PARTY,
    issuer: str = TEST_ISSUER,
    private_key: rsa.RSAPrivateKey | None = None,
) -> str:
    """Sign a Clerk-style RS256 session token for tests."""
    now = datetime.now(UTC)
    claims = {
        "sub": sub,
        "iss": issuer,
        "azp": azp,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(claims, private_key or signing_key, algorithm="RS256")


def non_dev_settings(**overrides: Any) -> Settings:
    """Settings with real authentication against the test signing key."""
    values = {
        "dev_mode": False,
        "app_env": "test",
        "clerk_issuer": TEST_ISSUER,
        "clerk_authorized_parties_str": TEST_AUTHORIZED_PARTY,
        "clerk_webhook_secret": TEST_WEBHOOK_SECRET,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def sign_webhook(payload: dict[str, Any], secret: str = TEST_WEBHOOK_SECRET) -> tuple[str, dict]:
    """Serialize and sign a webhook payload the way Svix delivers it."""
    body = json.dumps(payload)
    msg_id = "msg_test_" + str(abs(hash(body)))
    timestamp = datetime.now(UTC)
    signature = Webhook(secret).sign(msg_id, timestamp, body)
    headers = {
        "svix-id": msg_id,
        "svix-timestamp": str(int(timestamp.timestamp())),
        "svix-signature": signature,
        "content-type": "application/json",
    }
    return body, headers


@asynccontextmanager
async def create_authenticated_client(
    db_session: AsyncSession,
    token: str | None,
    settings: Settings | None = None,
) -> AsyncGenerator[AsyncClient]:
    """
    Create an AsyncClient that authenticates with a session token.

    Overrides FastAPI dependencies to disable dev_mode, and yields an
    AsyncClient sending the given bearer token (or none). Cleans up
    dependency overrides on exit, restoring any that were in place.
    """
    from api.main import app
    from db.session import get_async_session

    get_settings.cache_clear()
    app_settings = settings or non_dev_settings()

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    def override_get_settings() -> Settings:
        return app_settings

    previous_overrides = dict(app.dependency_overrides)
    app.dependency_overrides[get_async_session] = override_get_async_session
    app.dependency_overrides[get_settings] = override_get_settings

    headers = {"Authorization": f"Bearer {token}"} if token else {}
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            headers=headers,
        ) as authenticated_client:
            yield authenticated_client
    finally:
        app.dependency_overrides.clear()
        app.dependency_overrides.update(previous_overrides)


@asynccontextmanager
async def create_user2_client(
    db_session: AsyncSession,
    user_id: str = "user_second",
    email: str = "second@example.com",
) -> AsyncGenerator[AsyncClient]:
    """Create a synced second user and an AsyncClient signed in as them."""
    user2 = User(id=user_id, email=email)
    db_session.add(user2)
    await db_session.flush()

    async with create_authenticated_client(
        db_session, make_session_token(user_id),
    ) as user2_client:
        yield user2_client
