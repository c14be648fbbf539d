"""Statistics endpoint."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from models.user import User
from schemas.stats import ProblemStats
from services.stats_service import get_problem_stats

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=ProblemStats)
async def get_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ProblemStats:
    """
    Get statistics over the current user's problems.

    - **difficulty**: counts for EASY, MEDIUM and HARD (zero when absent)
    - **success_rate**: percentage of problems not marked as hard
    - **languages**: top 5 languages by count
    - **categories**: top 8 categories by count
    - **recent_activity**: problems per month over the last 6 months, newest first
    """
    return await get_problem_stats(db, current_user.id)
