"""Service layer for category operations."""
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.category import Category, problem_categories
from models.problem import Problem
from schemas.category import CategoryCount
from schemas.problem import normalize_category_names


async def get_or_create_categories(
    db: AsyncSession,
    category_names: list[str],
) -> list[Category]:
    """
    Get existing categories or create new ones.

    Names are trimmed and deduplicated first, so the returned list never holds
    the same category twice.

    Args:
        db: Database session.
        category_names: List of category names to get or create.

    Returns:
        List of Category objects (existing or newly created), in input order.
    """
    normalized = normalize_category_names(category_names)
    if not normalized:
        return []

    result = await db.execute(
        select(Category).where(Category.name.in_(normalized)),
    )
    existing = {category.name: category for category in result.scalars()}

    categories = []
    for name in normalized:
        if name in existing:
            categories.append(existing[name])
        else:
            new_category = Category(name=name)
            db.add(new_category)
            categories.append(new_category)

    await db.flush()
    return categories


async def update_problem_categories(
    db: AsyncSession,
    problem: Problem,
    category_names: list[str],
) -> None:
    """
    Replace a problem's categories using the junction table.

    Args:
        db: Database session.
        problem: The problem to update (categories relationship must be loaded).
        category_names: New list of category names.
    """
    problem.categories = await get_or_create_categories(db, category_names)
    await db.flush()


async def get_user_categories_with_counts(
    db: AsyncSession,
    user_id: str,
    limit: int | None = None,
) -> list[CategoryCount]:
    """
    Get categories used by a user's problems with their usage counts.

    Categories are global, but only those attached to at least one of this
    user's problems are returned.

    Args:
        db: Database session.
        user_id: User ID to scope the counts.
        limit: Optional maximum number of categories to return.

    Returns:
        List of CategoryCount objects sorted by count desc, then name asc.
    """
    count = func.count(problem_categories.c.problem_id).label("count")
    query = (
        select(Category.name, count)
        .join(problem_categories, Category.id == problem_categories.c.category_id)
        .join(Problem, problem_categories.c.problem_id == Problem.id)
        .where(Problem.user_id == user_id)
        .group_by(Category.id, Category.name)
        .order_by(count.desc(), Category.name.asc())
    )
    if limit is not None:
        query = query.limit(limit)

    result = await db.execute(query)
    return [CategoryCount(name=row.name, count=row.count) for row in result]
