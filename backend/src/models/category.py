"""Category model and the problem/category junction table."""
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Table, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base

if TYPE_CHECKING:
    from models.problem import Problem


# Junction table for many-to-many relationship between problems and categories
problem_categories = Table(
    "problem_categories",
    Base.metadata,
    Column(
        "problem_id",
        Integer,
        ForeignKey("problems.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "category_id",
        Integer,
        ForeignKey("categories.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    # Index for lookups by category (composite PK already indexes problem_id first)
    Index("ix_problem_categories_category_id", "category_id"),
)


class Category(Base):
    """Category model - a globally unique name shared by all users' problems."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    problems: Mapped[list["Problem"]] = relationship(
        secondary=problem_categories,
        back_populates="categories",
    )
