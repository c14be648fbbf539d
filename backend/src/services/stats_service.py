"""Service layer for per-user problem statistics."""
import math
from collections import Counter
from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.problem import Difficulty, Problem
from schemas.stats import LanguageCount, MonthlyActivity, ProblemStats
from services.category_service import get_user_categories_with_counts
from services.csv_service import as_utc

TOP_LANGUAGES = 5
TOP_CATEGORIES = 8
ACTIVITY_MONTHS = 6


def success_rate(total: int, hard: int) -> int:
    """Percentage of problems not marked as hard, rounded half up; 0 when empty."""
    if total == 0:
        return 0
    return math.floor((total - hard) / total * 100 + 0.5)


def months_ago(moment: datetime, months: int) -> datetime:
    """Same day-of-month `months` calendar months earlier, clamped to month end."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    # Last day of the target month
    next_month = datetime(year + month // 12, month % 12 + 1, 1, tzinfo=moment.tzinfo)
    last_day = (next_month - datetime.resolution).day
    return moment.replace(year=year, month=month, day=min(moment.day, last_day))


async def get_problem_stats(
    db: AsyncSession,
    user_id: str,
    now: datetime | None = None,
) -> ProblemStats:
    """
    Compute statistics over a user's problems.

    Rankings (languages, categories) are ordered by count desc, then name asc.

    Args:
        db: Database session.
        user_id: User ID to scope the statistics.
        now: Reference time for the recent-activity window. Defaults to now.
    """
    now = now or datetime.now(UTC)

    total = (
        await db.execute(
            select(func.count()).select_from(Problem).where(Problem.user_id == user_id),
        )
    ).scalar() or 0

    difficulty_rows = await db.execute(
        select(Problem.difficulty, func.count().label("count"))
        .where(Problem.user_id == user_id)
        .group_by(Problem.difficulty),
    )
    difficulty = {level.value: 0 for level in Difficulty}
    for row in difficulty_rows:
        difficulty[Difficulty(row.difficulty).value] = row.count

    hard = (
        await db.execute(
            select(func.count())
            .select_from(Problem)
            .where(Problem.user_id == user_id, Problem.was_hard.is_(True)),
        )
    ).scalar() or 0

    language_count = func.count().label("count")
    language_rows = await db.execute(
        select(Problem.language_used, language_count)
        .where(Problem.user_id == user_id)
        .group_by(Problem.language_used)
        .order_by(language_count.desc(), Problem.language_used.asc())
        .limit(TOP_LANGUAGES),
    )
    languages = [
        LanguageCount(language=row.language_used, count=row.count) for row in language_rows
    ]

    categories = await get_user_categories_with_counts(db, user_id, limit=TOP_CATEGORIES)

    cutoff = months_ago(now, ACTIVITY_MONTHS)
    solved_dates = await db.execute(
        select(Problem.date_solved).where(
            Problem.user_id == user_id,
            Problem.date_solved >= cutoff,
        ),
    )
    per_month = Counter(as_utc(solved).strftime("%Y-%m") for solved in solved_dates.scalars())
    recent_activity = [
        MonthlyActivity(month=month, count=count)
        for month, count in sorted(per_month.items(), reverse=True)
    ]

    return ProblemStats(
        total_problems=total,
        difficulty=difficulty,
        success_rate=success_rate(total, hard),
        languages=languages,
        categories=categories,
        recent_activity=recent_activity,
    )
