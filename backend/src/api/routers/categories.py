"""Category endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from models.user import User
from schemas.category import CategoryListResponse
from services.category_service import get_user_categories_with_counts

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("/", response_model=CategoryListResponse)
async def list_categories(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> CategoryListResponse:
    """
    Get the categories used by the current user's problems with usage counts.

    Results are sorted by count DESC, then name ASC.
    """
    categories = await get_user_categories_with_counts(db, current_user.id)
    return CategoryListResponse(categories=categories)
