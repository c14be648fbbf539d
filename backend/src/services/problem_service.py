"""Service layer for problem CRUD operations."""
import logging
from datetime import UTC, datetime
from typing import Literal

from sqlalchemy import case, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.category import Category, problem_categories
from models.problem import Difficulty, Problem
from schemas.problem import ProblemCreate, ProblemUpdate, normalize_category_names
from services.category_service import get_or_create_categories, update_problem_categories
from services.utils import escape_ilike

logger = logging.getLogger(__name__)

SortField = Literal["date_solved", "created_at", "updated_at", "title", "difficulty"]

# EASY < MEDIUM < HARD rather than alphabetical
DIFFICULTY_RANK = {Difficulty.EASY: 1, Difficulty.MEDIUM: 2, Difficulty.HARD: 3}


async def create_problem(
    db: AsyncSession,
    user_id: str,
    data: ProblemCreate,
) -> Problem:
    """
    Create a new problem for a user.

    Categories that don't exist yet are created. date_solved defaults to now.

    Args:
        db: Database session.
        user_id: User ID to create the problem for.
        data: Problem creation data.

    Returns:
        The created problem with its categories loaded.

    Note:
        Does not commit. Caller (session generator) handles commit at request end.
    """
    categories = await get_or_create_categories(db, data.categories)
    problem = Problem(
        user_id=user_id,
        title=data.title,
        url=data.url,
        difficulty=data.difficulty,
        language_used=data.language_used,
        solution_notes=data.solution_notes,
        what_went_wrong=data.what_went_wrong,
        trigger_keywords=data.trigger_keywords,
        time_complexity=data.time_complexity,
        space_complexity=data.space_complexity,
        was_hard=data.was_hard,
        date_solved=data.date_solved or datetime.now(UTC),
    )
    problem.categories = categories
    db.add(problem)
    await db.flush()
    await db.refresh(problem)
    # Ensure categories is loaded for the response
    await db.refresh(problem, attribute_names=["categories"])
    return problem


async def get_problem(
    db: AsyncSession,
    user_id: str,
    problem_id: int,
) -> Problem | None:
    """
    Get a problem by ID, scoped to user.

    Returns:
        The problem if it exists and belongs to the user, None otherwise.
    """
    result = await db.execute(
        select(Problem)
        .options(selectinload(Problem.categories))
        .where(
            Problem.id == problem_id,
            Problem.user_id == user_id,
        ),
    )
    return result.scalar_one_or_none()


async def search_problems(  # noqa: PLR0913
    db: AsyncSession,
    user_id: str,
    query: str | None = None,
    difficulties: list[Difficulty] | None = None,
    language: str | None = None,
    was_hard: bool | None = None,
    categories: list[str] | None = None,
    category_match: Literal["all", "any"] = "all",
    sort_by: SortField = "date_solved",
    sort_order: Literal["asc", "desc"] = "desc",
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[Problem], int]:
    """
    Search and filter problems for a user with pagination.

    Args:
        db: Database session.
        user_id: User ID to scope problems.
        query: Case-insensitive text search across title, url, trigger keywords
            and solution notes.
        difficulties: Only problems with one of these difficulties.
        language: Only problems solved in this language (case-insensitive).
        was_hard: Only problems with this was_hard flag.
        categories: Filter by category names.
        category_match: "all" (must have all categories) or "any".
        sort_by: Field to sort by.
        sort_order: Sort direction.
        offset: Pagination offset.
        limit: Pagination limit.

    Returns:
        Tuple of (list of problems, total count).
    """
    base_query = (
        select(Problem)
        .options(selectinload(Problem.categories))
        .where(Problem.user_id == user_id)
    )

    if query:
        search_pattern = f"%{escape_ilike(query)}%"
        base_query = base_query.where(
            or_(
                Problem.title.ilike(search_pattern, escape="\\"),
                Problem.url.ilike(search_pattern, escape="\\"),
                Problem.trigger_keywords.ilike(search_pattern, escape="\\"),
                Problem.solution_notes.ilike(search_pattern, escape="\\"),
            ),
        )

    if difficulties:
        base_query = base_query.where(Problem.difficulty.in_(difficulties))

    if language:
        base_query = base_query.where(
            func.lower(Problem.language_used) == language.strip().lower(),
        )

    if was_hard is not None:
        base_query = base_query.where(Problem.was_hard.is_(was_hard))

    names = normalize_category_names(categories or [])
    if names:
        if category_match == "all":
            # Must have ALL specified categories (via junction table)
            for name in names:
                subq = (
                    select(problem_categories.c.problem_id)
                    .join(Category, problem_categories.c.category_id == Category.id)
                    .where(
                        problem_categories.c.problem_id == Problem.id,
                        Category.name == name,
                    )
                )
                base_query = base_query.where(exists(subq))
        else:
            subq = (
                select(problem_categories.c.problem_id)
                .join(Category, problem_categories.c.category_id == Category.id)
                .where(
                    problem_categories.c.problem_id == Problem.id,
                    Category.name.in_(names),
                )
            )
            base_query = base_query.where(exists(subq))

    count_query = select(func.count()).select_from(base_query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    # Tiebreaker on id for deterministic ordering
    sort_columns = {
        "date_solved": Problem.date_solved,
        "created_at": Problem.created_at,
        "updated_at": Problem.updated_at,
        "title": func.lower(Problem.title),
        "difficulty": case(DIFFICULTY_RANK, value=Problem.difficulty),
    }
    sort_column = sort_columns[sort_by]
    if sort_order == "desc":
        base_query = base_query.order_by(sort_column.desc(), Problem.id.desc())
    else:
        base_query = base_query.order_by(sort_column.asc(), Problem.id.asc())

    base_query = base_query.offset(offset).limit(limit)

    result = await db.execute(base_query)
    return list(result.scalars().all()), total


async def list_all_problems(db: AsyncSession, user_id: str) -> list[Problem]:
    """Get every problem of a user, most recently solved first (used for export)."""
    result = await db.execute(
        select(Problem)
        .options(selectinload(Problem.categories))
        .where(Problem.user_id == user_id)
        .order_by(Problem.date_solved.desc(), Problem.id.desc()),
    )
    return list(result.scalars().all())


async def update_problem(
    db: AsyncSession,
    user_id: str,
    problem_id: int,
    data: ProblemUpdate,
) -> Problem | None:
    """
    Replace a problem's mutable fields and categories.

    Returns None if not found or owned by another user. When date_solved is
    omitted the stored value is kept.

    Note: Does not commit. Caller (session generator) handles commit at request end.
    """
    problem = await get_problem(db, user_id, problem_id)
    if problem is None:
        return None

    update_data = data.model_dump(exclude={"categories"})
    if update_data["date_solved"] is None:
        update_data.pop("date_solved")

    for field, value in update_data.items():
        setattr(problem, field, value)

    await update_problem_categories(db, problem, data.categories)
    problem.updated_at = func.now()

    await db.flush()
    await db.refresh(problem)
    await db.refresh(problem, attribute_names=["categories"])
    return problem


async def delete_problem(
    db: AsyncSession,
    user_id: str,
    problem_id: int,
) -> bool:
    """
    Permanently delete a problem. Category associations are removed with it;
    the categories themselves are kept.

    Returns:
        True if deleted, False if not found or owned by another user.
    """
    problem = await get_problem(db, user_id, problem_id)
    if problem is None:
        return False

    await db.delete(problem)
    await db.flush()
    logger.debug("Deleted problem %s for user %s", problem_id, user_id)
    return True
