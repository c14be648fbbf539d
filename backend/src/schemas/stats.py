"""Pydantic schemas for the statistics endpoint."""
from pydantic import BaseModel

from schemas.category import CategoryCount


class LanguageCount(BaseModel):
    """Number of problems solved in one language."""

    language: str
    count: int


class MonthlyActivity(BaseModel):
    """Number of problems solved in one calendar month (YYYY-MM)."""

    month: str
    count: int


class ProblemStats(BaseModel):
    """Aggregate statistics over the current user's problems."""

    total_problems: int
    difficulty: dict[str, int]  # Always contains EASY, MEDIUM and HARD
    success_rate: int  # Percentage of problems not marked as hard
    languages: list[LanguageCount]  # Top 5
    categories: list[CategoryCount]  # Top 8
    recent_activity: list[MonthlyActivity]  # Trailing 6 months, most recent first
