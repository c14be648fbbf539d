"""Clerk webhook endpoint keeping the users table in sync."""
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from svix.webhooks import WebhookVerificationError

from api.dependencies import get_async_session, get_settings
from core.config import Settings
from core.webhooks import WebhookHeadersMissingError, verify_clerk_webhook
from schemas.user import ClerkWebhookEvent
from services.user_service import apply_clerk_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/clerk")
async def clerk_webhook(
    request: Request,
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> dict[str, str]:
    """
    Receive user.created, user.updated and user.deleted events from Clerk.

    The signature is always verified before the payload is parsed.

    Returns 500 if the signing secret is not configured.
    Returns 400 if the signature headers are missing, the signature is invalid,
    or the payload is not a valid event.
    """
    if not settings.clerk_webhook_secret:
        logger.error("CLERK_WEBHOOK_SECRET is not configured; rejecting webhook")
        raise HTTPException(status_code=500, detail="Webhook secret not configured")

    payload = await request.body()
    try:
        verified = verify_clerk_webhook(payload, request.headers, settings.clerk_webhook_secret)
    except WebhookHeadersMissingError as e:
        logger.warning("Rejected webhook: %s", e)
        raise HTTPException(status_code=400, detail="Missing webhook headers") from e
    except WebhookVerificationError as e:
        logger.warning("Rejected webhook with invalid signature: %s", e)
        raise HTTPException(status_code=400, detail="Invalid webhook signature") from e
    except json.JSONDecodeError as e:
        logger.warning("Rejected signed webhook with a non-JSON body")
        raise HTTPException(status_code=400, detail="Invalid webhook payload") from e

    try:
        event = ClerkWebhookEvent.model_validate(verified)
        await apply_clerk_event(db, event)
    except ValidationError as e:
        logger.warning("Rejected malformed webhook payload: %s", e)
        raise HTTPException(status_code=400, detail="Invalid webhook payload") from e

    return {"status": "ok"}
