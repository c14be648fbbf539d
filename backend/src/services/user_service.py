"""Service layer for users mirrored from Clerk."""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.user import User
from schemas.user import ClerkUserData, ClerkWebhookEvent

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: str) -> User | None:
    """Get a user by Clerk user id."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def upsert_user(
    db: AsyncSession,
    user_id: str,
    email: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
) -> User:
    """
    Create the user or overwrite its profile fields.

    Idempotent: replaying the same event leaves a single, identical row.

    Note: Uses flush(), not commit. Session generator handles commit at request end.
    """
    user = await get_user(db, user_id)
    if user is None:
        user = User(id=user_id)
        db.add(user)

    user.email = email
    user.first_name = first_name
    user.last_name = last_name
    await db.flush()
    return user


async def delete_user(db: AsyncSession, user_id: str) -> bool:
    """
    Delete a user; their problems go with them via ON DELETE CASCADE.

    Returns:
        True if a user was deleted, False if none existed.
    """
    user = await get_user(db, user_id)
    if user is None:
        return False
    await db.delete(user)
    await db.flush()
    return True


async def apply_clerk_event(db: AsyncSession, event: ClerkWebhookEvent) -> None:
    """Mirror a verified Clerk user event into the users table."""
    if event.type in ("user.created", "user.updated"):
        data = ClerkUserData.model_validate(event.data)
        await upsert_user(
            db,
            data.id,
            email=data.primary_email,
            first_name=data.first_name,
            last_name=data.last_name,
        )
        logger.info("Synced user %s from %s", data.id, event.type)
    elif event.type == "user.deleted":
        user_id = event.data.get("id")
        if not user_id:
            logger.warning("user.deleted event without user id")
            return
        deleted = await delete_user(db, user_id)
        logger.info("user.deleted for %s (existed: %s)", user_id, deleted)
    else:
        logger.debug("Ignoring Clerk event type %s", event.type)
