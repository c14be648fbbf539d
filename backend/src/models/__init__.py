"""SQLAlchemy models."""
from models.base import Base, TimestampMixin
from models.category import Category, problem_categories  # Must be before problem due to import
from models.problem import Difficulty, Problem
from models.user import User

__all__ = [
    "Base",
    "Category",
    "Difficulty",
    "Problem",
    "TimestampMixin",
    "User",
    "problem_categories",
]
