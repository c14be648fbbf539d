"""Health check endpoints."""
import logging

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import get_async_session


logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str
    database_mode: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health_check(
    request: Request,
    db: AsyncSession = Depends(get_async_session),
) -> HealthResponse:
    """Check application and database health, and report the active database mode."""
    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database health check failed")
        db_status = "unhealthy"

    config = getattr(request.app.state, "database_config", None)
    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        database=db_status,
        database_mode=config.mode if config is not None else None,
    )
