"""Authentication module for Clerk session token validation."""
import logging

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWKClient
from jwt.exceptions import PyJWKClientConnectionError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from db.session import get_async_session
from models.user import User
from services import user_service

logger = logging.getLogger(__name__)


# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)

# Cache for JWKS client (reuse across requests)
_jwks_clients: dict[str, PyJWKClient] = {}

DEV_USER_ID = "user_dev_local"


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_jwks_client(settings: Settings) -> PyJWKClient:
    """Get or create a cached JWKS client for the given settings."""
    if settings.clerk_jwks_url not in _jwks_clients:
        _jwks_clients[settings.clerk_jwks_url] = PyJWKClient(
            settings.clerk_jwks_url,
            cache_jwk_set=True,
            lifespan=3600,  # Cache keys for 1 hour
        )
    return _jwks_clients[settings.clerk_jwks_url]


def decode_session_token(token: str, settings: Settings) -> dict:
    """
    Decode and validate a Clerk session token.

    Clerk session tokens are RS256 JWTs whose `sub` is the Clerk user id. When
    authorized parties are configured, the `azp` claim must be one of them.

    Raises:
        HTTPException: 401 if the token is invalid or expired, 503 if the
            signing keys cannot be fetched.
    """
    try:
        jwks_client = get_jwks_client(settings)
        signing_key = jwks_client.get_signing_key_from_jwt(token)

        payload = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            issuer=settings.clerk_issuer or None,
            options={"require": ["exp", "iat", "sub"]},
        )
    except PyJWKClientConnectionError as e:
        logger.error("Failed to fetch JWKS from Clerk: %s", e, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not validate credentials",
        ) from e
    except jwt.PyJWTError as e:
        # Log full details for debugging (server-side only)
        logger.warning("Session token validation failed: %s", e)
        raise _unauthorized() from e

    authorized_parties = settings.clerk_authorized_parties
    if authorized_parties and payload.get("azp") not in authorized_parties:
        logger.warning("Session token has unauthorized azp %r", payload.get("azp"))
        raise _unauthorized()

    return payload


async def get_or_create_dev_user(db: AsyncSession) -> User:
    """Get or create the local development user for DEV_MODE."""
    user = await user_service.get_user(db, DEV_USER_ID)
    if user is not None:
        return user
    return await user_service.upsert_user(
        db,
        DEV_USER_ID,
        email="dev@localhost",
        first_name="Local",
        last_name="Developer",
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    Dependency that validates the session token and returns the current user.

    Users are created by the Clerk webhook, never here: a valid token for a
    user that has not been synced yet is rejected with 401.

    In DEV_MODE, bypasses auth and returns the local development user.
    """
    if settings.dev_mode:
        return await get_or_create_dev_user(db)

    if credentials is None:
        raise _unauthorized()

    payload = decode_session_token(credentials.credentials, settings)
    user = await user_service.get_user(db, payload["sub"])
    if user is None:
        logger.warning("Session token for unknown user %s", payload["sub"])
        raise _unauthorized()
    return user
